"""Conversation content exchanged with the model.

The Messages API hands back loosely shaped JSON blocks. They are parsed into a
closed set of frozen dataclasses so the tool loop can dispatch on type instead
of probing dictionaries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ImageBlock:
    media_type: str
    data: str


@dataclass(frozen=True)
class ToolInvocation:
    id: str
    name: str
    input: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    tool_use_id: str
    content: str
    is_error: bool = False


Block = Union[TextBlock, ImageBlock, ToolInvocation, ToolResult]


@dataclass
class Turn:
    role: str
    content: List[Block]


@dataclass(frozen=True)
class GeneratedFile:
    path: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "content": self.content}


@dataclass
class GenerationResult:
    files: List[GeneratedFile]

    def to_dict(self) -> Dict[str, List[Dict[str, str]]]:
        return {"files": [item.to_dict() for item in self.files]}


def to_wire(block: Block) -> Dict[str, Any]:
    if isinstance(block, TextBlock):
        return {"type": "text", "text": block.text}
    if isinstance(block, ImageBlock):
        return {
            "type": "image",
            "source": {"type": "base64", "media_type": block.media_type, "data": block.data},
        }
    if isinstance(block, ToolInvocation):
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": block.input}
    if isinstance(block, ToolResult):
        payload: Dict[str, Any] = {
            "type": "tool_result",
            "tool_use_id": block.tool_use_id,
            "content": block.content,
        }
        if block.is_error:
            payload["is_error"] = True
        return payload
    raise TypeError(f"Unsupported block: {block!r}")


def turn_to_wire(turn: Turn) -> Dict[str, Any]:
    return {"role": turn.role, "content": [to_wire(block) for block in turn.content]}


def from_wire(payload: Dict[str, Any]) -> Optional[Block]:
    """Parse one response block; returns None for block types outside the union."""
    kind = payload.get("type")
    if kind == "text":
        return TextBlock(text=payload.get("text", ""))
    if kind == "tool_use":
        raw_input = payload.get("input")
        return ToolInvocation(
            id=str(payload.get("id", "")),
            name=str(payload.get("name", "")),
            input=raw_input if isinstance(raw_input, dict) else {},
        )
    if kind == "image":
        source = payload.get("source") or {}
        return ImageBlock(media_type=source.get("media_type", "image/jpeg"), data=source.get("data", ""))
    if kind == "tool_result":
        return ToolResult(
            tool_use_id=str(payload.get("tool_use_id", "")),
            content=str(payload.get("content", "")),
            is_error=bool(payload.get("is_error", False)),
        )
    logger.debug("Skipping unsupported content block type %r", kind)
    return None
