from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from makeable.agent.blocks import GenerationResult
from makeable.agent.content import Attachment
from makeable.agent.generator import Generator
from makeable.services.projects import ProjectStore, project_files, utc_now

logger = logging.getLogger(__name__)

ERROR_PAGE = """<!DOCTYPE html>
<html><head><title>Error</title><style>body{font-family:sans-serif;padding:2rem;background:#f5f5f5;}</style></head>
<body><h1>Generation Failed</h1><p>Please check your API key and try again.</p></body></html>"""


def apply_generation(
    project: Dict[str, Any], result: GenerationResult, prompt: Optional[str] = None
) -> Dict[str, Any]:
    """Replace the project's files with the loop output; record iteration prompts."""
    project["files"] = [item.to_dict() for item in result.files]
    if prompt is not None:
        project.setdefault("promptHistory", []).append({"prompt": prompt, "timestamp": utc_now()})
        project["prompt"] = f"{project['prompt']}\n\nIteration: {prompt}"
    return project


async def run_generation(
    store: ProjectStore,
    generator: Generator,
    project_id: str,
    prompt: str,
    attachments: Optional[List[Attachment]] = None,
) -> None:
    """Background continuation of a create request; completion is visible via the store."""
    project = store.get(project_id)
    if project is None:
        logger.error("Project %s disappeared before generation started", project_id)
        return
    logger.info("Generating app from prompt: %s", prompt)
    try:
        result = await generator.generate(prompt, None, attachments, title=project["name"])
    except Exception:
        logger.exception("Error generating app for project %s", project_id)
        project["files"] = [{"path": "index.html", "content": ERROR_PAGE}]
        store.put(project_id, project)
        return
    store.put(project_id, apply_generation(project, result))
    logger.info("App generation completed for project: %s", project_id)


async def iterate_project(
    store: ProjectStore,
    generator: Generator,
    project: Dict[str, Any],
    prompt: str,
    attachments: Optional[List[Attachment]] = None,
) -> Dict[str, Any]:
    logger.info("Iterating on project: %s with prompt: %s", project["id"], prompt)
    result = await generator.generate(prompt, project_files(project), attachments, title=project["name"])
    apply_generation(project, result, prompt)
    store.put(project["id"], project)
    return project
