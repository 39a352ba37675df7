import logging
import os
import re
import uuid
from pathlib import Path

from hardban_lab.config import settings
from hardban_lab.exceptions import NotFoundError, ValidationFailed

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png")
AUDIO_EXTENSIONS = ("wav", "flac", "mp3")


def upload_root() -> Path:
    return Path(settings.upload_dir).resolve()


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower().lstrip(".")


def safe_filename(filename: str) -> str:
    name = os.path.basename(filename or "upload")
    return re.sub(r"[^\w.-]", "_", name)


def save_upload(contents: bytes, filename: str, folder: str, allowed) -> str:
    """Write an uploaded file under the upload directory and return its public URL."""
    ext = file_extension(filename)
    if ext not in allowed:
        raise ValidationFailed(f"Unsupported file type. Allowed: {', '.join(allowed)}")

    target_dir = upload_root() / folder
    target_dir.mkdir(parents=True, exist_ok=True)
    stored_name = f"{uuid.uuid4().hex[:12]}_{safe_filename(filename)}"
    (target_dir / stored_name).write_bytes(contents)

    relative = f"{folder}/{stored_name}"
    logger.info(f"Stored upload {relative} ({len(contents)} bytes)")
    return f"{settings.public_base_url}/uploads/{relative}"


def resolve_upload(relative_path: str) -> Path:
    root = upload_root()
    path = (root / relative_path).resolve()
    if root not in path.parents or not path.is_file():
        raise NotFoundError("File not found")
    return path
