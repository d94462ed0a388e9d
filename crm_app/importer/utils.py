"""
Importer-specific utilities for handling uploaded files and cleanup.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable
from uuid import uuid4

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

DEFAULT_UPLOAD_SUBDIR = "import_uploads"
CSV_EXTENSIONS: tuple[str, ...] = ("csv",)


def _normalize_upload_dir(configured_path: str | None, instance_path: str) -> Path:
    if not configured_path:
        return Path(instance_path) / DEFAULT_UPLOAD_SUBDIR

    candidate = Path(configured_path)
    if candidate.is_absolute():
        return candidate

    return Path(instance_path) / candidate


def resolve_upload_directory(app) -> Path:
    """
    Determine and create (if necessary) the importer upload directory.
    """

    upload_dir = _normalize_upload_dir(app.config.get("IMPORTER_UPLOAD_DIR"), app.instance_path)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def allowed_file(filename: str, allowed_extensions: Iterable[str] = CSV_EXTENSIONS) -> bool:
    """
    Validate the uploaded filename extension against the allowed set.
    """

    if not filename or "." not in filename:
        return False
    extension = filename.rsplit(".", 1)[1].lower()
    return extension in {ext.lower() for ext in allowed_extensions}


def display_file_name(filename: str | None, *, fallback: str = "upload.csv") -> str:
    """Sanitized file name stored on the job record."""

    cleaned = secure_filename(filename or "")
    return cleaned or fallback


def max_upload_bytes(app) -> int:
    return int(app.config.get("IMPORTER_MAX_UPLOAD_MB", 25)) * 1024 * 1024


def read_upload_bytes(file_storage: FileStorage) -> bytes:
    """Return the raw bytes of an uploaded file."""

    file_storage.stream.seek(0)
    return file_storage.stream.read()


def persist_upload_bytes(content: bytes, app, *, suffix: str = ".csv") -> Path:
    """
    Write upload content under ``resolve_upload_directory(app)`` and return the path.

    Files get UUID-based names so concurrent submissions never collide.
    """

    upload_dir = resolve_upload_directory(app)
    extension = suffix if suffix.startswith(".") else f".{suffix}"
    target_path = upload_dir / f"{uuid4().hex}{extension}"
    target_path.write_bytes(content)
    current_app.logger.debug("Importer upload persisted to %s", target_path)
    return target_path


def cleanup_upload(path: Path) -> None:
    """
    Remove a stored upload, logging but ignoring filesystem errors.
    """

    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        current_app.logger.warning("Failed to remove importer upload %s: %s", path, exc)


def count_data_rows(content: str | bytes) -> int:
    """Count non-blank lines after the header, as a submission-time estimate of the row total."""

    if isinstance(content, bytes):
        content = content.decode("utf-8-sig", errors="replace")
    lines = [line for line in content.splitlines() if line.strip()]
    return max(len(lines) - 1, 0)
