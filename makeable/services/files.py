from __future__ import annotations

from typing import Iterable, List, Optional

from pydantic import BaseModel

from makeable.agent.content import Attachment


class UploadedFile(BaseModel):
    name: str
    type: str = ""
    data: str = ""
    url: Optional[str] = None


def strip_data_url(data: str) -> str:
    """Drop a ``data:<mime>;base64,`` prefix, leaving the bare base64 payload."""
    if data.startswith("data:") and "," in data:
        return data.split(",", 1)[1]
    return data


def to_attachment(upload: UploadedFile) -> Attachment:
    return Attachment(
        name=upload.name,
        mime_type=upload.type or "",
        inline_data=strip_data_url(upload.data),
        remote_url=upload.url or None,
    )


def to_attachments(uploads: Optional[Iterable[UploadedFile]]) -> List[Attachment]:
    return [to_attachment(upload) for upload in uploads or []]
