from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from makeable.agent.blocks import Block, ImageBlock, TextBlock
from makeable.agent.images import normalize, validate_size
from makeable.config import DEFAULT_MAX_IMAGE_BYTES
from makeable.errors import CompressionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attachment:
    name: str
    mime_type: str
    inline_data: str
    remote_url: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return self.mime_type.lower().startswith("image/")


MEDIA_TYPES = {
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
}


def infer_media_type(attachment: Attachment) -> str:
    """Prefer the declared MIME type; the file extension only decides when the MIME type is silent."""
    subtype = attachment.mime_type.lower().partition("/")[2]
    for key, media_type in MEDIA_TYPES.items():
        if key in subtype:
            return media_type
    extension = attachment.name.lower().rsplit(".", 1)[-1] if "." in attachment.name else ""
    return MEDIA_TYPES.get(extension, "image/jpeg")


def image_url_instructions(urls: List[str]) -> str:
    listing = "\n".join(f"Image {index}: {url}" for index, url in enumerate(urls, start=1))
    return (
        f"\n\nCRITICAL - {len(urls)} IMAGE(S) PROVIDED\n\n"
        f"You can see {len(urls)} image(s) above in the message content.\n\n"
        "YOU MUST embed these images directly in your HTML using these exact URLs:\n\n"
        f"{listing}\n\n"
        "Use <img> tags like this:\n"
        f'<img src="{urls[0]}" alt="User provided image" style="max-width: 100%; height: auto;">\n\n'
        "DO NOT use base64 data URIs - use the URLs provided above!"
    )


def _fit_image(block: ImageBlock, max_image_bytes: int) -> Optional[ImageBlock]:
    try:
        raw = base64.b64decode(block.data, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Dropping image with undecodable base64 payload")
        return None
    if validate_size(raw, max_image_bytes):
        return block
    logger.info("Image size %s bytes exceeds limit, compressing...", len(raw))
    try:
        compressed = normalize(raw, max_image_bytes)
    except CompressionError as exc:
        logger.warning("Dropping image that could not be compressed: %s", exc)
        return None
    return ImageBlock(media_type="image/jpeg", data=base64.b64encode(compressed).decode("ascii"))


def build_content(
    prompt_text: str,
    attachments: Optional[Iterable[Attachment]] = None,
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
) -> List[Block]:
    """Assemble the first user turn: one text block followed by image blocks.

    Images that stay oversized after compression are dropped instead of
    failing the whole request.
    """
    text = prompt_text
    images: List[ImageBlock] = []
    image_urls: List[str] = []

    for attachment in attachments or []:
        if not attachment.is_image:
            text += f"\n\n[User provided file: {attachment.name}]"
            continue
        if attachment.remote_url:
            image_urls.append(attachment.remote_url)
        images.append(ImageBlock(media_type=infer_media_type(attachment), data=attachment.inline_data))

    if image_urls:
        text += image_url_instructions(image_urls)

    content: List[Block] = [TextBlock(text=text)]
    for block in images:
        fitted = _fit_image(block, max_image_bytes)
        if fitted is not None:
            content.append(fitted)
    return content
