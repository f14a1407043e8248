"""JSON representations of import jobs and rows returned by the API and CLI."""

from __future__ import annotations

from typing import Any

from flask import url_for

from roster_app.models import ImportJob, ImportRow


def _isoformat(value) -> str | None:
    return value.isoformat() if value else None


def _enum_value(value) -> str | None:
    if value is None:
        return None
    return value.value if hasattr(value, "value") else str(value)


def serialize_row(row: ImportRow) -> dict[str, Any]:
    return {
        "id": row.id,
        "row_number": row.row_number,
        "action": _enum_value(row.action),
        "payload": row.payload,
        "errors": row.errors or {},
    }


def serialize_job(job: ImportJob, *, include_rows: bool = False, include_url: bool = True) -> dict[str, Any]:
    """
    Render a job for API consumers.

    ``error_report_url`` needs a request or ``SERVER_NAME`` to build; the CLI
    passes ``include_url=False``.
    """

    report_available = bool(job.error_report_path)
    report_url = None
    if report_available and include_url:
        report_url = url_for("roster_imports.download_import_errors", job_id=job.id)

    user = job.user
    payload: dict[str, Any] = {
        "id": job.id,
        "status": _enum_value(job.status),
        "original_filename": job.original_filename,
        "file_hash": job.file_hash,
        "counts": job.counts,
        "column_map": job.column_map,
        "processed_at": _isoformat(job.processed_at),
        "created_at": _isoformat(job.created_at),
        "error_report_available": report_available,
        "error_report_url": report_url,
        "user": {"id": user.id, "name": user.name, "email": user.email} if user is not None else None,
    }
    if include_rows:
        payload["rows"] = [serialize_row(row) for row in job.rows]
    return payload
