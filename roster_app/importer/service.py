"""
Service facade tying uploads, dry runs, and applies together for callers.

Both the HTTP blueprint and the CLI go through ``RosterImportService`` so the
storage, logging, and metrics behavior stays identical across entry points.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, NoResultFound
from sqlalchemy.orm import Session, selectinload
from werkzeug.datastructures import FileStorage

from roster_app.models import ImportJob, ImportJobStatus, Team, User, db

from .adapters import UNREADABLE_FILE_MESSAGE, SpreadsheetReadError, read_spreadsheet_rows
from .errors import ImportValidationError
from .metrics import record_upload
from .pipeline import (
    DryRunSummary,
    discover_columns,
    load_job_rows,
)
from .pipeline import apply_import as _apply_import
from .pipeline import finalize_import as _finalize_import
from .pipeline import perform_dry_run as _perform_dry_run
from .pipeline import resolve_error_report as _resolve_error_report
from .utils import cleanup_upload, compute_file_hash, persist_upload

DEFAULT_RECENT_JOBS_LIMIT = 10


@dataclass(frozen=True)
class UploadResult:
    """Job created (or reused) for an uploaded file."""

    job: ImportJob
    duplicate: bool
    columns: list[str] = field(default_factory=list)


class RosterImportService:
    """Facade over the roster import pipeline with a shared session."""

    def __init__(self, session: Session | None = None) -> None:
        self.session: Session = session or db.session

    # ---------------------------------------------------------------------
    # Queries
    # ---------------------------------------------------------------------

    def get_job(self, job_id: int) -> ImportJob:
        job = self.session.get(ImportJob, job_id)
        if job is None:
            raise NoResultFound(f"Import job {job_id} not found.")
        return job

    def list_recent_jobs(self, limit: int | None = None) -> list[ImportJob]:
        if limit is None:
            limit = int(current_app.config.get("IMPORTER_RECENT_JOBS_LIMIT", DEFAULT_RECENT_JOBS_LIMIT))
        statement = (
            select(ImportJob)
            .options(selectinload(ImportJob.user))
            .order_by(ImportJob.created_at.desc(), ImportJob.id.desc())
            .limit(limit)
        )
        return list(self.session.scalars(statement).all())

    def find_by_hash(self, team: Team, file_hash: str) -> ImportJob | None:
        return self.session.scalars(
            select(ImportJob).where(ImportJob.team_id == team.id, ImportJob.file_hash == file_hash).limit(1)
        ).first()

    def available_columns(self, job: ImportJob) -> list[str]:
        """Return the column names detected in the job's stored upload."""

        return discover_columns(load_job_rows(job))

    # ---------------------------------------------------------------------
    # Commands
    # ---------------------------------------------------------------------

    def store_upload(self, file_storage: FileStorage, user: User | None, team: Team) -> UploadResult:
        """
        Persist an uploaded roster and create its pending job.

        An upload whose content hash already exists for the team returns the
        existing job with ``duplicate=True`` and stores nothing.

        Raises:
            ImportValidationError: the file cannot be read as a spreadsheet.
        """

        file_hash = compute_file_hash(file_storage)
        existing = self.find_by_hash(team, file_hash)
        if existing is not None:
            return self._duplicate_result(existing)

        absolute_path, relative_path = persist_upload(file_storage, current_app, team_id=team.id)
        try:
            columns = discover_columns(read_spreadsheet_rows(absolute_path))
        except (SpreadsheetReadError, ImportValidationError) as exc:
            cleanup_upload(absolute_path)
            record_upload("invalid")
            current_app.logger.warning(
                "Rejected unreadable roster upload",
                extra={"import_team_id": team.id, "import_filename": file_storage.filename},
            )
            if isinstance(exc, ImportValidationError):
                raise
            raise ImportValidationError.for_field("file", UNREADABLE_FILE_MESSAGE) from exc

        job = ImportJob(
            team_id=team.id,
            user_id=user.id if user is not None else None,
            original_filename=file_storage.filename or Path(relative_path).name,
            stored_path=relative_path,
            file_hash=file_hash,
            status=ImportJobStatus.PENDING,
        )
        self.session.add(job)
        try:
            self.session.commit()
        except IntegrityError:
            # Another request stored the same file first.
            self.session.rollback()
            cleanup_upload(absolute_path)
            winner = self.find_by_hash(team, file_hash)
            if winner is None:
                raise
            return self._duplicate_result(winner)

        record_upload("created")
        current_app.logger.info(
            "Roster upload stored",
            extra={
                "import_job_id": job.id,
                "import_team_id": team.id,
                "import_filename": job.original_filename,
                "import_columns": columns,
            },
        )
        return UploadResult(job=job, duplicate=False, columns=columns)

    def perform_dry_run(self, job: ImportJob, column_map: Mapping[str, Any]) -> DryRunSummary:
        return _perform_dry_run(job, column_map, session=self.session)

    def apply_import(self, job: ImportJob) -> ImportJob:
        """Apply the job, then refresh its counts and error report."""

        _apply_import(job, session=self.session)
        return self.finalize_import(job)

    def finalize_import(self, job: ImportJob) -> ImportJob:
        return _finalize_import(job, session=self.session)

    def resolve_error_report(self, job: ImportJob) -> Path:
        return _resolve_error_report(job)

    # ---------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------

    def _duplicate_result(self, job: ImportJob) -> UploadResult:
        record_upload("duplicate")
        current_app.logger.info(
            "Duplicate roster upload matched existing job",
            extra={"import_job_id": job.id, "import_team_id": job.team_id},
        )
        return UploadResult(job=job, duplicate=True, columns=self.available_columns(job))
