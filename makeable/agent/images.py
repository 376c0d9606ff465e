from __future__ import annotations

import io
import logging
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from makeable.config import DEFAULT_MAX_IMAGE_BYTES
from makeable.errors import CompressionError

logger = logging.getLogger(__name__)

MAX_DIMENSION = 1024
INITIAL_QUALITY = 80
QUALITY_STEP = 10
MIN_QUALITY = 10


def validate_size(buffer: bytes, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> bool:
    return len(buffer) <= max_bytes


def target_dimensions(width: int, height: int, max_dimension: int = MAX_DIMENSION) -> Tuple[int, int]:
    """Fit the longer side into max_dimension, keeping the aspect ratio. Never upscales."""
    if width >= height:
        if width > max_dimension:
            return max_dimension, max(1, round(height * max_dimension / width))
    elif height > max_dimension:
        return max(1, round(width * max_dimension / height)), max_dimension
    return width, height


def _encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def normalize(buffer: bytes, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> bytes:
    """Shrink and re-encode an image as JPEG until it fits into max_bytes.

    Quality walks down from INITIAL_QUALITY in QUALITY_STEP decrements and stops
    at MIN_QUALITY. Raises CompressionError when the ceiling cannot be met or the
    buffer is not a readable image.
    """
    try:
        with Image.open(io.BytesIO(buffer)) as source:
            source.load()
            width, height = source.size
            size = target_dimensions(width, height)
            image = source.convert("RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise CompressionError(f"Failed to compress image: {exc}") from exc

    if image.size != size:
        image = image.resize(size, Image.LANCZOS)

    quality = INITIAL_QUALITY
    compressed = _encode_jpeg(image, quality)
    while len(compressed) > max_bytes and quality > MIN_QUALITY:
        quality -= QUALITY_STEP
        compressed = _encode_jpeg(image, quality)

    if len(compressed) > max_bytes:
        raise CompressionError(
            f"Image could not be compressed below {max_bytes} bytes "
            f"({len(compressed)} bytes at quality {quality})"
        )
    logger.info(
        "Compressed image %sx%s (%s bytes) to %sx%s at quality %s (%s bytes)",
        width,
        height,
        len(buffer),
        size[0],
        size[1],
        quality,
        len(compressed),
    )
    return compressed
