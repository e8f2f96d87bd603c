"""
Image processing for uploads (Pillow).
"""

from __future__ import annotations

import io
from typing import Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from yoyo_mall.core.exceptions import ValidationFailedError

FORMAT_CONTENT_TYPES = {
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}


def _open(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationFailedError("File is not a readable image", code="INVALID_IMAGE") from e
    return ImageOps.exif_transpose(image)


def _encode(image: Image.Image, fmt: str, quality: int) -> bytes:
    if fmt == "jpeg" and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    elif fmt == "webp" and image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA")
    buffer = io.BytesIO()
    options = {"quality": quality}
    if fmt == "jpeg":
        options["optimize"] = True
        options["progressive"] = True
    image.save(buffer, format=fmt.upper(), **options)
    return buffer.getvalue()


def optimize_image(
    data: bytes,
    max_width: int = 1920,
    max_height: int = 1080,
    quality: int = 85,
    fmt: str = "jpeg",
) -> Tuple[bytes, str]:
    """Fit inside ``max_width`` x ``max_height`` without enlarging and re-encode.

    Returns:
        ``(bytes, content_type)``
    """
    image = _open(data)
    image.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)
    return _encode(image, fmt, quality), FORMAT_CONTENT_TYPES[fmt]


def create_thumbnail(data: bytes, width: int = 300, height: int = 300, quality: int = 80) -> Tuple[bytes, str]:
    """Cover-crop to exactly ``width`` x ``height`` as JPEG."""
    image = ImageOps.fit(_open(data), (width, height), Image.Resampling.LANCZOS)
    return _encode(image, "jpeg", quality), FORMAT_CONTENT_TYPES["jpeg"]


def avatar_image(data: bytes, size: int = 400, quality: int = 85) -> Tuple[bytes, str]:
    """Square avatar, cover-cropped, as WebP."""
    image = ImageOps.fit(_open(data), (size, size), Image.Resampling.LANCZOS)
    return _encode(image, "webp", quality), FORMAT_CONTENT_TYPES["webp"]
