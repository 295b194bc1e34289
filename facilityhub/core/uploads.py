"""Local disk storage for uploaded files, rooted at settings.upload_dir."""
import logging
import os
import re
import uuid
from typing import Optional
from facilityhub.core.config import settings
from facilityhub.core.exceptions import AppException

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "image/jpeg",
    "image/png",
    "image/gif",
    "text/plain",
}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(name: Optional[str]) -> str:
    base = os.path.basename(name or "").strip()
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned[:150] or "file"


def validate_upload(filename: Optional[str], content_type: Optional[str], size: int):
    if not filename:
        raise AppException("No file uploaded", error_code="NO_FILE")
    if content_type not in ALLOWED_MIME_TYPES:
        raise AppException(f"File type {content_type} is not allowed", error_code="INVALID_FILE_TYPE")
    if size > settings.max_upload_size_bytes:
        raise AppException(
            f"File size exceeds {settings.max_upload_size_mb}MB limit",
            status_code=413,
            error_code="FILE_TOO_LARGE",
        )


def store_file(subdir: str, original_name: str, content: bytes) -> tuple:
    """Write `content` under <upload_dir>/<subdir>/<uuid4>-<sanitised name>. Returns (stored name, path)."""
    directory = os.path.join(settings.upload_dir, subdir)
    os.makedirs(directory, exist_ok=True)
    stored_name = f"{uuid.uuid4()}-{sanitize_filename(original_name)}"
    path = os.path.join(directory, stored_name)
    with open(path, "wb") as f:
        f.write(content)
    logger.info(f"Stored upload {stored_name} ({len(content)} bytes)")
    return stored_name, path


def remove_file(path: Optional[str]) -> bool:
    if path and os.path.exists(path):
        os.remove(path)
        return True
    return False
