"""
Error report generation for applied roster imports.

The report lists every ``error`` row of a job with its payload and the
flattened validation messages so operators can fix the spreadsheet and
upload it again.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping

from flask import current_app
from sqlalchemy import select

from roster_app.importer.errors import ErrorReportNotFound
from roster_app.importer.utils import (
    cleanup_upload,
    error_report_relative_path,
    resolve_artifact_directory,
)
from roster_app.models.base import db
from roster_app.models.importer.schema import ImportJob, ImportRow, ImportRowAction

REPORT_HEADERS: tuple[str, ...] = ("row_number", "full_name", "email", "jersey", "position", "errors")
_PAYLOAD_COLUMNS: tuple[str, ...] = ("full_name", "email", "jersey", "position")
ERROR_SEPARATOR = "; "


def escape_for_csv(value: str) -> str:
    """Double embedded quotes and wrap the cell when it holds a quote, comma, or newline."""

    needs_quotes = '"' in value or "," in value or "\n" in value
    escaped = value.replace('"', '""')
    return f'"{escaped}"' if needs_quotes else escaped


def flatten_error_messages(errors: Mapping[str, Any] | None) -> list[str]:
    messages: list[str] = []
    for value in (errors or {}).values():
        if isinstance(value, (list, tuple)):
            messages.extend(str(item) for item in value)
        elif value is not None:
            messages.append(str(value))
    return messages


def _cell(payload: Mapping[str, Any], field: str) -> str:
    value = payload.get(field)
    return "" if value is None else str(value)


def build_error_report_csv(rows: Iterable[ImportRow]) -> str:
    """Render error rows as CSV text (no trailing newline)."""

    lines = [",".join(REPORT_HEADERS)]
    for row in rows:
        payload = row.payload or {}
        cells = [str(row.row_number)]
        cells.extend(escape_for_csv(_cell(payload, field)) for field in _PAYLOAD_COLUMNS)
        cells.append(escape_for_csv(ERROR_SEPARATOR.join(flatten_error_messages(row.errors))))
        lines.append(",".join(cells))
    return "\n".join(lines)


def _report_path(relative_path: str) -> Path:
    return resolve_artifact_directory(current_app) / relative_path


def remove_error_report(job: ImportJob) -> None:
    """Delete the job's report file, if any, and clear its path."""

    if job.error_report_path:
        cleanup_upload(_report_path(job.error_report_path))
    job.error_report_path = None


def generate_error_report(job: ImportJob, *, session=None) -> str | None:
    """
    Regenerate the error report for ``job``.

    Any previous report is deleted first. When the job has no error rows the
    path is cleared and ``None`` is returned; otherwise the relative report
    path is stored on the job and returned. The caller owns the commit.
    """

    session = session or db.session
    remove_error_report(job)

    error_rows = session.scalars(
        select(ImportRow)
        .where(ImportRow.job_id == job.id, ImportRow.action == ImportRowAction.ERROR)
        .order_by(ImportRow.row_number)
    ).all()
    if not error_rows:
        return None

    relative_path = error_report_relative_path(job.team_id, job.id)
    target = _report_path(relative_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(build_error_report_csv(error_rows), encoding="utf-8")

    job.error_report_path = relative_path
    current_app.logger.info(
        "Roster import error report written",
        extra={
            "import_job_id": job.id,
            "import_error_rows": len(error_rows),
            "import_error_report": relative_path,
        },
    )
    return relative_path


def resolve_error_report(job: ImportJob) -> Path:
    """
    Return the absolute path of the job's error report.

    Raises:
        ErrorReportNotFound: the job has no report path or the file is gone.
    """

    if not job.error_report_path:
        raise ErrorReportNotFound(job.id)
    path = _report_path(job.error_report_path)
    if not path.is_file():
        raise ErrorReportNotFound(job.id)
    return path
