"""Apply a previewed roster import to the team's players."""

from __future__ import annotations

from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import func, select

from roster_app.importer.errors import ImportApplyError, ImportStateError
from roster_app.importer.metrics import record_apply
from roster_app.models.base import db
from roster_app.models.importer.schema import ImportJob, ImportJobStatus, ImportRow, ImportRowAction
from roster_app.models.player import Player

from .report import generate_error_report

DRY_RUN_REQUIRED_MESSAGE = "Dry-run must be completed before applying the import."

_PLAYER_FIELDS = ("full_name", "email", "jersey", "position")


def _resolve_player(session, job: ImportJob, row: ImportRow, payload: dict) -> Player:
    if row.action == ImportRowAction.UPDATE:
        player = session.scalars(
            select(Player).where(Player.team_id == job.team_id, Player.email == payload.get("email")).limit(1)
        ).first()
        if player is not None:
            return player
        # Player vanished since the dry run.
        row.action = ImportRowAction.CREATE

    player = Player(team_id=job.team_id)
    session.add(player)
    return player


def apply_import(job: ImportJob, *, session=None) -> ImportJob:
    """
    Write every ``create``/``update`` row of a ready job to the players table.

    All player writes and the transition to ``completed`` share one
    transaction. Counts and the error report are refreshed separately by
    ``finalize_import``.

    Raises:
        ImportStateError: the job is not ``ready``.
        ImportApplyError: the transaction failed and was rolled back; the job
            stays ``ready``.
    """

    session = session or db.session
    if job.status != ImportJobStatus.READY:
        record_apply("invalid")
        raise ImportStateError(DRY_RUN_REQUIRED_MESSAGE)

    job_id = job.id
    applied = 0
    try:
        rows = session.scalars(
            select(ImportRow)
            .where(
                ImportRow.job_id == job_id,
                ImportRow.action.in_((ImportRowAction.CREATE, ImportRowAction.UPDATE)),
            )
            .order_by(ImportRow.row_number)
        ).all()

        for row in rows:
            payload = dict(row.payload or {})
            player = _resolve_player(session, job, row, payload)
            for field in _PLAYER_FIELDS:
                setattr(player, field, payload.get(field))
            session.flush()
            row.player_id = player.id
            applied += 1

        job.status = ImportJobStatus.COMPLETED
        job.processed_at = datetime.now(timezone.utc)
        session.commit()
    except Exception as exc:
        session.rollback()
        record_apply("failure")
        current_app.logger.exception(
            "Roster import apply failed; transaction rolled back",
            extra={"import_job_id": job_id},
        )
        raise ImportApplyError(job_id, str(exc)) from exc

    record_apply("success")
    current_app.logger.info(
        "Roster import applied",
        extra={"import_job_id": job_id, "import_team_id": job.team_id, "import_rows_applied": applied},
    )
    return job


def finalize_import(job: ImportJob, *, session=None) -> ImportJob:
    """
    Re-derive the job's counts from its rows and regenerate the error report.

    Safe to run repeatedly; it is the recovery path when the process stopped
    between the apply commit and this bookkeeping.
    """

    session = session or db.session
    grouped = session.execute(
        select(ImportRow.action, func.count(ImportRow.id)).where(ImportRow.job_id == job.id).group_by(ImportRow.action)
    ).all()
    counts = {action: count for action, count in grouped}

    job.created_count = counts.get(ImportRowAction.CREATE, 0)
    job.updated_count = counts.get(ImportRowAction.UPDATE, 0)
    job.error_count = counts.get(ImportRowAction.ERROR, 0)
    job.total_rows = job.created_count + job.updated_count + job.error_count

    try:
        generate_error_report(job, session=session)
        session.commit()
    except Exception:
        session.rollback()
        raise

    current_app.logger.info(
        "Roster import finalized",
        extra={"import_job_id": job.id, "import_counts": job.counts},
    )
    return job
