# storefront/shared/uploads.py

# Image upload handling: validation of incoming files, optimization to WebP
# with Pillow, and cleanup of files that are no longer referenced.

import asyncio
import io
import logging
import uuid
from pathlib import Path
from typing import List, Optional, Sequence

from fastapi import UploadFile
from PIL import Image, ImageOps, UnidentifiedImageError

from ..config.settings import settings
from ..config.paths import url_to_path
from .exceptions import ValidationFailure

logger = logging.getLogger(__name__)


# --- Validation ---

def check_upload(file: UploadFile, content: bytes) -> None:
    """Raises ValidationFailure for a disallowed MIME type, an empty or an oversized file."""
    if file.content_type not in settings.ALLOWED_MIME_TYPES:
        raise ValidationFailure(
            f"File type {file.content_type} is not allowed, only {', '.join(settings.ALLOWED_MIME_TYPES)} are allowed",
            data={"field": file.filename},
        )
    if not content:
        raise ValidationFailure("Empty file uploaded", data={"field": file.filename})
    if len(content) > settings.MAX_FILE_SIZE:
        raise ValidationFailure(
            f"File too large, maximum size is {settings.MAX_FILE_SIZE / (1024 * 1024):.1f}MB",
            status_code=413,
            data={"field": file.filename},
        )


# --- Optimization ---

def optimize_image(content: bytes) -> bytes:
    """
    EXIF-rotates, cover-crops to the configured size (never enlarging) and
    re-encodes as WebP.
    """
    try:
        image = Image.open(io.BytesIO(content))
        image = ImageOps.exif_transpose(image)
    except (UnidentifiedImageError, OSError) as exc:
        raise ValidationFailure("Invalid or corrupted image file") from exc

    size = (settings.IMAGE_WIDTH, settings.IMAGE_HEIGHT)
    if image.width >= size[0] and image.height >= size[1]:
        image = ImageOps.fit(image, size, method=Image.Resampling.LANCZOS)
    else:
        image.thumbnail(size, Image.Resampling.LANCZOS)

    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA" if "A" in image.getbands() else "RGB")

    output = io.BytesIO()
    image.save(output, format="WEBP", quality=settings.IMAGE_QUALITY, method=settings.IMAGE_EFFORT)
    return output.getvalue()


def _write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


async def save_images(files: Sequence[UploadFile], directory: Path, url_prefix: str) -> List[str]:
    """
    Validates, optimizes and stores `files` under `directory`.

    Returns:
        The public URLs of the stored images, in upload order.
    """
    if len(files) > settings.MAX_FILE_COUNT:
        raise ValidationFailure(f"Too many files, at most {settings.MAX_FILE_COUNT} are allowed")

    urls = []
    for file in files:
        content = await file.read()
        check_upload(file, content)
        optimized = await asyncio.to_thread(optimize_image, content)

        filename = f"{uuid.uuid4().hex}.webp"
        await asyncio.to_thread(_write, directory / filename, optimized)
        urls.append(f"{url_prefix}/{filename}")
        logger.info("Stored upload %s as %s", file.filename, filename)
    return urls


async def save_image(file: Optional[UploadFile], directory: Path, url_prefix: str) -> Optional[str]:
    if file is None or not file.filename:
        return None
    urls = await save_images([file], directory, url_prefix)
    return urls[0]


# --- Cleanup ---

async def delete_file(url: Optional[str]) -> bool:
    """Deletes the file behind a served image URL; a missing file is not an error."""
    if not url or not isinstance(url, str):
        return False
    path = url_to_path(url)
    try:
        await asyncio.to_thread(path.unlink, True)
    except OSError as exc:
        logger.warning("Could not delete %s: %s", path, exc)
        return False
    return True
