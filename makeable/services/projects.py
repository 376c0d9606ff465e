from __future__ import annotations

import json
import logging
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from makeable.agent.blocks import GeneratedFile

logger = logging.getLogger(__name__)

PROJECT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
REQUEST_PREFIX = re.compile(
    r"^(ich (möchte|würde|will|hätte) gerne|bau mir|create|build|make|erstelle)\s+",
    re.IGNORECASE,
)
ARTICLE_PREFIX = re.compile(r"^(eine?|an?)\s+", re.IGNORECASE)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_project_id() -> str:
    return f"project_{int(time.time() * 1000)}"


def generate_project_name(prompt: str) -> str:
    cleaned = ARTICLE_PREFIX.sub("", REQUEST_PREFIX.sub("", prompt.strip()))
    words = [word for word in cleaned.split() if len(word) > 2]
    name = " ".join(words[:4])
    name = name[:1].upper() + name[1:]
    if len(name) > 40:
        name = name[:40].strip() + "..."
    return name or "New App"


def new_project(project_id: str, name: str, prompt: str, user_id: str) -> Dict[str, Any]:
    now = utc_now()
    return {
        "id": project_id,
        "name": name,
        "prompt": prompt,
        "promptHistory": [{"prompt": prompt, "timestamp": now}],
        "files": [],
        "createdAt": now,
        "userId": user_id,
    }


def project_files(project: Dict[str, Any]) -> List[GeneratedFile]:
    return [GeneratedFile(item["path"], item["content"]) for item in project.get("files") or []]


class ProjectStore:
    """One pretty-printed JSON document per project id in a flat directory.

    Writes replace the whole document. There is no locking: two concurrent
    writers for the same id race and the last one wins.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, project_id: str) -> Path:
        if not PROJECT_ID_PATTERN.match(project_id or ""):
            raise ValueError(f"Invalid project id: {project_id!r}")
        return self.root / f"{project_id}.json"

    def get(self, project_id: str) -> Optional[Dict[str, Any]]:
        path = self._path(project_id)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def put(self, project_id: str, record: Dict[str, Any]) -> None:
        self._path(project_id).write_text(json.dumps(record, indent=2, ensure_ascii=False), encoding="utf-8")

    def delete(self, project_id: str) -> bool:
        path = self._path(project_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    def list(self) -> List[Dict[str, Any]]:
        projects = []
        for path in sorted(self.root.glob("*.json")):
            try:
                projects.append(json.loads(path.read_text(encoding="utf-8")))
            except (OSError, json.JSONDecodeError) as exc:
                logger.error("Skipping unreadable project file %s: %s", path.name, exc)
        return projects
