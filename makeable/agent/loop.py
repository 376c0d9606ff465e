from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence

from makeable.agent.blocks import (
    Block,
    GeneratedFile,
    GenerationResult,
    ToolInvocation,
    ToolResult,
    Turn,
)
from makeable.errors import GenerationError, IncompleteToolCallError, ToolCallError, UnsafePathError

logger = logging.getLogger(__name__)

MAX_TURNS = 10
MAX_TOKENS = 16000

WRITE_FILE_TOOL: Dict[str, Any] = {
    "name": "write_file",
    "description": (
        "Create or overwrite a file with the given content. Use this to generate HTML, CSS, "
        "JavaScript, or any other files needed for the app."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": 'The file path relative to the app root (e.g., "index.html", "styles.css", "app.js")',
            },
            "content": {
                "type": "string",
                "description": "The complete content of the file",
            },
        },
        "required": ["path", "content"],
    },
}


class MessageClient(Protocol):
    async def create_message(
        self,
        *,
        system: str,
        turns: Sequence[Turn],
        tools: Sequence[Dict[str, Any]],
        max_tokens: int,
    ) -> Any: ...


def clean_path(path: str) -> str:
    """Canonicalize a model-supplied path and refuse anything leaving the app root."""
    candidate = path.strip().replace("\\", "/")
    # Leading slash or a drive letter such as "C:".
    if candidate.startswith("/") or ":" in candidate.split("/")[0]:
        raise UnsafePathError(f"Error: path '{path}' must be relative to the app root.")
    parts = [part for part in candidate.split("/") if part not in ("", ".")]
    if ".." in parts:
        raise UnsafePathError(f"Error: path '{path}' must not contain '..' segments.")
    if not parts:
        raise IncompleteToolCallError("Error: Incomplete file data. Please try again with a simpler request.")
    return "/".join(parts)


def _write_file(arguments: Dict[str, Any], files: Dict[str, str]) -> str:
    path = arguments.get("path")
    content = arguments.get("content")
    if not isinstance(path, str) or not path.strip() or not isinstance(content, str) or not content:
        raise IncompleteToolCallError("Error: Incomplete file data. Please try again with a simpler request.")
    target = clean_path(path)
    files[target] = content
    return f"File {target} created successfully with {len(content)} characters"


def execute_tool(invocation: ToolInvocation, files: Dict[str, str]) -> ToolResult:
    logger.info("Tool use: %s %s", invocation.name, invocation.input.get("path"))
    if invocation.name != WRITE_FILE_TOOL["name"]:
        return ToolResult(invocation.id, f"Error: Unknown tool '{invocation.name}'.", is_error=True)
    try:
        message = _write_file(invocation.input, files)
    except ToolCallError as exc:
        logger.warning("Rejected %s call %s: %s", invocation.name, invocation.id, exc)
        return ToolResult(invocation.id, str(exc), is_error=True)
    return ToolResult(invocation.id, message)


async def run_tool_loop(
    client: MessageClient,
    system_prompt: str,
    initial_content: List[Block],
    prior_files: Optional[Iterable[GeneratedFile]] = None,
    *,
    max_turns: int = MAX_TURNS,
    max_tokens: int = MAX_TOKENS,
) -> GenerationResult:
    """Drive the model through write_file calls until it stops calling tools.

    The file accumulator starts as a copy of prior_files, so files the model
    does not touch survive unchanged. Running out of turns just stops the loop;
    only an empty accumulator at the end is an error.
    """
    files: Dict[str, str] = {item.path: item.content for item in prior_files or []}
    turns: List[Turn] = [Turn(role="user", content=list(initial_content))]

    for turn_index in range(max_turns):
        response = await client.create_message(
            system=system_prompt,
            turns=turns,
            tools=[WRITE_FILE_TOOL],
            max_tokens=max_tokens,
        )
        logger.info("Turn %s stop reason: %s", turn_index + 1, response.stop_reason)
        turns.append(Turn(role="assistant", content=list(response.content)))

        invocations = [block for block in response.content if isinstance(block, ToolInvocation)]
        if not invocations:
            break
        results: List[Block] = [execute_tool(invocation, files) for invocation in invocations]
        turns.append(Turn(role="user", content=results))
    else:
        logger.info("Turn budget of %s exhausted", max_turns)

    logger.info("Agent completed. Generated files: %s", list(files))
    if not files:
        raise GenerationError("No files were generated. Please try again with a more specific prompt.")
    return GenerationResult(files=[GeneratedFile(path, content) for path, content in files.items()])
