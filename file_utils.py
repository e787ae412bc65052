import os
import re
import io
import uuid
import base64
import binascii
import logging
from pathlib import Path
from typing import List, Optional, Tuple
from PIL import Image, UnidentifiedImageError
import aiofiles

from errors import ValidationError

logger = logging.getLogger(__name__)

# Allowed image formats (Pillow format name -> stored extension)
ALLOWED_IMAGE_FORMATS = {
    "JPEG": ".jpg",
    "PNG": ".png",
    "GIF": ".gif",
    "WEBP": ".webp",
}
MAX_ATTACHMENT_BYTES = int(os.getenv("MAX_ATTACHMENT_BYTES", 5 * 1024 * 1024))  # 5MB
MAX_IMAGE_DIMENSION = 10000

# Upload directories
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", "uploads"))
ATTACHMENT_SUBDIRS = ("applications", "branches", "profiles", "stories")

DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[\w/+.-]*);base64,(?P<payload>.*)$", re.DOTALL)


def ensure_directories():
    """Ensure all necessary directories exist."""
    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    for subdir in ATTACHMENT_SUBDIRS:
        (UPLOAD_DIR / subdir).mkdir(exist_ok=True)


def decode_attachment(data: str) -> bytes:
    """Decode a base64 string or ``data:<mime>;base64,`` URL into bytes."""
    if not data or not data.strip():
        raise ValidationError("Attachment is empty")

    match = DATA_URL_PATTERN.match(data.strip())
    payload = match.group("payload") if match else data.strip()

    # Size check before decoding: base64 inflates by 4/3
    if len(payload) * 3 // 4 > MAX_ATTACHMENT_BYTES:
        raise ValidationError(
            f"Attachment exceeds maximum allowed size of {MAX_ATTACHMENT_BYTES / (1024 * 1024)}MB"
        )

    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Attachment is not valid base64")

    if not content:
        raise ValidationError("Attachment is empty")
    if len(content) > MAX_ATTACHMENT_BYTES:
        raise ValidationError(
            f"Attachment exceeds maximum allowed size of {MAX_ATTACHMENT_BYTES / (1024 * 1024)}MB"
        )
    return content


def validate_image_bytes(content: bytes) -> str:
    """Validate that the bytes are a real image and return the file extension to use."""
    try:
        with Image.open(io.BytesIO(content)) as img:
            image_format = img.format
            width, height = img.size
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        raise ValidationError("Attachment is not a valid image")

    if image_format not in ALLOWED_IMAGE_FORMATS:
        raise ValidationError("Only JPG, PNG, GIF and WEBP images are allowed")
    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        raise ValidationError("Image dimensions are too large")

    return ALLOWED_IMAGE_FORMATS[image_format]


def prepare_image(data: str) -> Tuple[bytes, str]:
    """Decode and validate an inline image. Nothing is written yet."""
    content = decode_attachment(data)
    extension = validate_image_bytes(content)
    return content, extension


def generate_secure_filename(extension: str) -> str:
    """Generate a randomized filename."""
    return f"{uuid.uuid4()}{extension}"


async def _write_attachment(content: bytes, extension: str, subdir: str) -> str:
    target_dir = UPLOAD_DIR / subdir
    target_dir.mkdir(parents=True, exist_ok=True)

    filename = generate_secure_filename(extension)
    async with aiofiles.open(target_dir / filename, "wb") as buffer:
        await buffer.write(content)

    # Relative path for database storage
    return f"{subdir}/{filename}"


async def save_image(data: str, subdir: str) -> str:
    """Validate and store one inline image, returning its relative path."""
    content, extension = prepare_image(data)
    return await _write_attachment(content, extension, subdir)


async def save_images(items: List[str], subdir: str) -> List[str]:
    """
    Validate every image first, then store them all.

    Either all images are stored or none are.
    """
    prepared = [prepare_image(item) for item in items]

    saved = []
    try:
        for content, extension in prepared:
            saved.append(await _write_attachment(content, extension, subdir))
    except OSError:
        delete_attachments(saved)
        raise
    return saved


async def resolve_image(value: Optional[str], subdir: str) -> Optional[str]:
    """
    Accept either a path that is already stored or a new inline image.

    Clients re-send existing attachment paths unchanged when editing a record.
    """
    if not value:
        return None
    if get_file_path(value) is not None:
        return value
    return await save_image(value, subdir)


async def resolve_images(values: Optional[List[str]], subdir: str) -> List[str]:
    if not values:
        return []
    kept = [value for value in values if get_file_path(value) is not None]
    new_items = [value for value in values if get_file_path(value) is None]
    return kept + await save_images(new_items, subdir)


def get_file_path(relative_path: str) -> Optional[Path]:
    """Get the full file path for serving files."""
    if not relative_path or len(relative_path) > 255:
        return None

    # Ensure path doesn't escape our upload directory
    path = Path(relative_path)
    if path.is_absolute() or ".." in path.parts:
        return None

    full_path = UPLOAD_DIR / path
    if not full_path.is_file():
        return None

    return full_path


def delete_attachments(paths: List[str]):
    """Remove stored attachments. Missing files are ignored."""
    for relative_path in paths:
        file_path = get_file_path(relative_path)
        if file_path is None:
            continue
        try:
            file_path.unlink()
        except OSError as e:
            logger.warning(f"Could not remove attachment {relative_path}: {e}")
