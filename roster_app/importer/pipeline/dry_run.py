"""
Dry-run reconciliation of an uploaded roster against the team's players.

Every non-blank data row is classified as ``create``, ``update``, or
``error`` and persisted as an ``ImportRow``. Player rows are never touched
here; the plan is executed later by ``pipeline.apply``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from flask import current_app
from sqlalchemy import delete, insert

from roster_app.importer.adapters import UNREADABLE_FILE_MESSAGE, SpreadsheetReadError, read_spreadsheet_rows
from roster_app.importer.errors import ImportStateError, ImportValidationError
from roster_app.importer.metrics import record_dry_run
from roster_app.importer.utils import resolve_stored_upload
from roster_app.models.base import db
from roster_app.models.importer.schema import ImportJob, ImportJobStatus, ImportRow, ImportRowAction
from roster_app.models.player import Player

from .columns import ColumnSelector, resolve_column_selectors
from .report import remove_error_report
from .rows import RosterPayload, extract_payload
from .validation import ErrorBag, SeenEmails, validate_payload

DEFAULT_MAX_ROWS = 5000
FIRST_DATA_ROW_NUMBER = 2

EMPTY_FILE_MESSAGE = "The uploaded file is empty."
ALREADY_APPLIED_MESSAGE = "This import has already been applied."


def row_limit_message(max_rows: int) -> str:
    return f"The roster is limited to {max_rows} rows."


@dataclass(frozen=True)
class RowOutcome:
    """Classification of one non-blank data row."""

    row_number: int
    payload: RosterPayload
    action: ImportRowAction
    errors: ErrorBag = field(default_factory=dict)
    player_id: int | None = None


@dataclass(frozen=True)
class ReconciliationResult:
    outcomes: tuple[RowOutcome, ...]
    total: int
    created: int
    updated: int
    errors: int

    def action_counts(self) -> dict[str, int]:
        return {
            ImportRowAction.CREATE.value: self.created,
            ImportRowAction.UPDATE.value: self.updated,
            ImportRowAction.ERROR.value: self.errors,
        }


@dataclass(frozen=True)
class DryRunSummary:
    """Outcome statistics for a dry run."""

    job_id: int
    total_rows: int
    created: int
    updated: int
    errors: int
    duration_seconds: float


def reconcile_rows(
    data_rows: Sequence[Any],
    selectors: Mapping[str, ColumnSelector],
    existing_players: Mapping[str, int],
    *,
    max_rows: int = DEFAULT_MAX_ROWS,
) -> ReconciliationResult:
    """
    Classify data rows against a snapshot of existing players.

    ``existing_players`` maps lower-cased email to player id. Row numbers
    start at 2 and follow the position in ``data_rows``, so skipped blank
    rows still consume a number.

    Raises:
        ImportValidationError: more than ``max_rows`` non-blank rows.
    """

    seen_emails = SeenEmails()
    outcomes: list[RowOutcome] = []
    created = updated = errors = 0

    for index, raw_row in enumerate(data_rows):
        row_number = index + FIRST_DATA_ROW_NUMBER
        payload = extract_payload(raw_row, selectors)
        if payload is None:
            continue

        if len(outcomes) + 1 > max_rows:
            raise ImportValidationError.for_field("file", row_limit_message(max_rows))

        row_errors = validate_payload(payload, seen_emails)
        player_id = None
        if row_errors:
            action = ImportRowAction.ERROR
            errors += 1
        else:
            player_id = existing_players.get(payload["email"].lower())
            if player_id is not None:
                action = ImportRowAction.UPDATE
                updated += 1
            else:
                action = ImportRowAction.CREATE
                created += 1

        outcomes.append(
            RowOutcome(
                row_number=row_number,
                payload=payload,
                action=action,
                errors=row_errors,
                player_id=player_id,
            )
        )

    return ReconciliationResult(
        outcomes=tuple(outcomes),
        total=len(outcomes),
        created=created,
        updated=updated,
        errors=errors,
    )


def load_job_rows(job: ImportJob) -> list[Any]:
    """
    Read the stored upload for ``job``.

    Raises:
        ImportValidationError: the file cannot be parsed.
    """

    path = resolve_stored_upload(current_app, job.stored_path)
    try:
        return read_spreadsheet_rows(path)
    except SpreadsheetReadError as exc:
        current_app.logger.warning(
            "Roster upload could not be read",
            extra={"import_job_id": job.id, "import_read_error": exc.reason},
        )
        raise ImportValidationError.for_field("file", UNREADABLE_FILE_MESSAGE) from exc


def _resolve_max_rows(max_rows: int | None) -> int:
    if max_rows is not None:
        return max_rows
    return int(current_app.config.get("IMPORTER_MAX_ROWS", DEFAULT_MAX_ROWS))


def _row_values(job_id: int, outcome: RowOutcome, timestamp: datetime) -> dict[str, Any]:
    return {
        "job_id": job_id,
        "player_id": outcome.player_id,
        "row_number": outcome.row_number,
        "payload": dict(outcome.payload),
        "action": outcome.action,
        "errors": dict(outcome.errors) if outcome.errors else None,
        "created_at": timestamp,
        "updated_at": timestamp,
    }


def perform_dry_run(
    job: ImportJob,
    column_map: Mapping[str, Any],
    *,
    max_rows: int | None = None,
    session=None,
) -> DryRunSummary:
    """
    Recompute the job's row outcomes for ``column_map``.

    The previous rows are replaced and the job moves to ``ready`` in a single
    commit, and only once every row has been classified: any validation
    failure leaves the job and its existing rows untouched.

    Raises:
        ImportStateError: the job has already been applied.
        ImportValidationError: the file is unreadable, empty, too long, or the
            column map does not resolve.
    """

    session = session or db.session
    start_time = time.perf_counter()
    limit = _resolve_max_rows(max_rows)

    try:
        if job.status == ImportJobStatus.COMPLETED:
            raise ImportStateError(ALREADY_APPLIED_MESSAGE)

        rows = load_job_rows(job)
        if not rows:
            raise ImportValidationError.for_field("file", EMPTY_FILE_MESSAGE)

        resolution = resolve_column_selectors(column_map, rows)
        existing_players = Player.snapshot_by_email(job.team_id)
        result = reconcile_rows(resolution.data_rows, resolution.selectors, existing_players, max_rows=limit)
    except ImportValidationError as exc:
        record_dry_run(status="invalid", duration_seconds=time.perf_counter() - start_time)
        current_app.logger.info(
            "Roster dry run rejected",
            extra={"import_job_id": job.id, "import_validation_errors": exc.messages},
        )
        raise

    timestamp = datetime.now(timezone.utc)
    try:
        session.execute(delete(ImportRow).where(ImportRow.job_id == job.id))
        if result.outcomes:
            session.execute(
                insert(ImportRow),
                [_row_values(job.id, outcome, timestamp) for outcome in result.outcomes],
            )

        remove_error_report(job)
        job.column_map = dict(column_map)
        job.status = ImportJobStatus.READY
        job.total_rows = result.total
        job.created_count = result.created
        job.updated_count = result.updated
        job.error_count = result.errors
        job.processed_at = None
        session.commit()
    except Exception:
        session.rollback()
        raise

    duration = time.perf_counter() - start_time
    record_dry_run(status="success", duration_seconds=duration, action_counts=result.action_counts())
    current_app.logger.info(
        "Roster dry run completed",
        extra={
            "import_job_id": job.id,
            "import_team_id": job.team_id,
            "import_total_rows": result.total,
            "import_created": result.created,
            "import_updated": result.updated,
            "import_errors": result.errors,
            "import_duration_ms": round(duration * 1000, 2),
        },
    )
    return DryRunSummary(
        job_id=job.id,
        total_rows=result.total,
        created=result.created,
        updated=result.updated,
        errors=result.errors,
        duration_seconds=duration,
    )
