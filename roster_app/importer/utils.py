"""
Importer-specific utilities for storing uploaded rosters and their artifacts.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Iterable
from uuid import uuid4

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

DEFAULT_UPLOAD_SUBDIR = "import_uploads"
DEFAULT_ARTIFACT_SUBDIR = "import_artifacts"
IMPORTS_SUBDIR = "imports"
_HASH_CHUNK_SIZE = 64 * 1024


def _normalize_storage_dir(
    configured_path: str | None,
    instance_path: str,
    *,
    default_subdir: str,
) -> Path:
    if not configured_path:
        return Path(instance_path) / default_subdir

    candidate = Path(configured_path)
    if candidate.is_absolute():
        return candidate

    return Path(instance_path) / candidate


def resolve_upload_directory(app) -> Path:
    """
    Determine and create (if necessary) the importer upload directory.
    """

    upload_dir = _normalize_storage_dir(
        app.config.get("IMPORTER_UPLOAD_DIR"),
        app.instance_path,
        default_subdir=DEFAULT_UPLOAD_SUBDIR,
    )
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def resolve_artifact_directory(app) -> Path:
    """
    Determine and create (if necessary) the directory error reports are written to.
    """

    artifact_dir = _normalize_storage_dir(
        app.config.get("IMPORTER_ARTIFACT_DIR"),
        app.instance_path,
        default_subdir=DEFAULT_ARTIFACT_SUBDIR,
    )
    artifact_dir.mkdir(parents=True, exist_ok=True)
    return artifact_dir


def allowed_file(filename: str, allowed_extensions: Iterable[str]) -> bool:
    """
    Validate the uploaded filename extension against the allowed set.
    """

    if not filename or "." not in filename:
        return False
    extension = filename.rsplit(".", 1)[1].lower()
    return extension in {ext.lower() for ext in allowed_extensions}


def compute_file_hash(file_storage: FileStorage) -> str:
    """Return the SHA-256 hex digest of an upload, rewinding the stream afterwards."""

    digest = hashlib.sha256()
    stream = file_storage.stream
    stream.seek(0)
    for chunk in iter(lambda: stream.read(_HASH_CHUNK_SIZE), b""):
        digest.update(chunk)
    stream.seek(0)
    return digest.hexdigest()


def persist_upload(file_storage: FileStorage, app, *, team_id: int) -> tuple[Path, str]:
    """
    Persist the uploaded file under ``imports/<team_id>/`` and return its paths.

    Returns a tuple of the absolute path on disk and the path relative to the
    upload directory, which is what gets stored on the job. Files are prefixed
    with a UUID to avoid collisions while keeping the original name readable.
    """

    upload_dir = resolve_upload_directory(app)
    original_name = secure_filename(file_storage.filename or "") or "roster.csv"

    relative_path = Path(IMPORTS_SUBDIR) / str(team_id) / f"{uuid4().hex}_{original_name}"
    target_path = upload_dir / relative_path
    target_path.parent.mkdir(parents=True, exist_ok=True)
    file_storage.stream.seek(0)
    file_storage.save(target_path)
    current_app.logger.debug("Roster upload persisted to %s", target_path)
    return target_path, relative_path.as_posix()


def resolve_stored_upload(app, stored_path: str) -> Path:
    """Return the absolute path of a stored upload."""

    return resolve_upload_directory(app) / stored_path


def error_report_relative_path(team_id: int, job_id: int) -> str:
    return f"{IMPORTS_SUBDIR}/{team_id}/reports/import_{job_id}_errors.csv"


def cleanup_upload(path: Path) -> None:
    """
    Remove a stored file, logging filesystem errors instead of raising them.
    """

    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        current_app.logger.warning("Failed to remove importer file %s: %s", path, exc)
