from __future__ import annotations

from typing import Optional


class MakeableError(Exception):
    """Base class for errors raised by the generation pipeline."""


class CompressionError(MakeableError):
    """An image could not be brought under the size ceiling."""


class GenerationError(MakeableError):
    """The tool loop finished without producing a single file."""


class UpstreamError(MakeableError):
    retryable = False

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class UpstreamTimeout(UpstreamError):
    retryable = True


class ToolCallError(MakeableError):
    """A tool invocation the loop refuses to execute; reported back to the model."""


class IncompleteToolCallError(ToolCallError):
    pass


class UnsafePathError(ToolCallError):
    pass
