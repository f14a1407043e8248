"""
CLI commands for running roster imports from the shell.

Every command goes through ``RosterImportService`` and prints a JSON summary
so the output can be piped into other tooling.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click
from flask.cli import ScriptInfo, with_appcontext
from sqlalchemy.exc import NoResultFound
from werkzeug.datastructures import FileStorage

from roster_app.importer.errors import ImportApplyError, ImportValidationError
from roster_app.importer.serializers import serialize_job
from roster_app.importer.service import RosterImportService
from roster_app.models import Team, User, db
from roster_app.utils.importer import get_importer_formats, is_importer_enabled


@click.group(name="importer", invoke_without_command=True)
@click.pass_context
def importer_cli(ctx):
    """
    Roster importer commands.

    Displays accepted upload formats when invoked without a subcommand.
    """
    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()
    if not is_importer_enabled(app):
        raise click.ClickException(
            "Importer is disabled via IMPORTER_ENABLED=false. " "Enable it to run importer CLI commands."
        )
    if ctx.invoked_subcommand is None:
        click.echo("Accepted roster formats:")
        for name in get_importer_formats(app):
            click.echo(f"  - {name}")


def get_disabled_importer_group() -> click.Group:
    """
    Return a minimal command group that informs the operator the importer is disabled.
    """

    @click.group(name="importer", invoke_without_command=True)
    def disabled_group():
        raise click.ClickException("Importer commands are unavailable because IMPORTER_ENABLED=false.")

    return disabled_group


def _format_validation_error(exc: ImportValidationError) -> str:
    lines = [exc.first_message]
    for field_name, messages in exc.messages.items():
        for message in messages:
            lines.append(f"  {field_name}: {message}")
    return "\n".join(lines)


def _load_job(service: RosterImportService, job_id: int):
    try:
        return service.get_job(job_id)
    except NoResultFound as exc:
        raise click.ClickException(f"Import job {job_id} not found.") from exc


def _parse_column_map(pairs: tuple[str, ...]) -> dict[str, str]:
    column_map: dict[str, str] = {}
    for pair in pairs:
        field_name, separator, column = pair.partition("=")
        if not separator or not field_name.strip():
            raise click.BadParameter(f"Expected FIELD=COLUMN, got '{pair}'.", param_hint="--map")
        column_map[field_name.strip()] = column.strip()
    return column_map


def _echo_job(job, **extra) -> None:
    payload = serialize_job(job, include_url=False)
    payload.update(extra)
    click.echo(json.dumps(payload, indent=2, sort_keys=True))


@importer_cli.command("upload")
@with_appcontext
@click.argument("file_path", type=click.Path(path_type=Path, exists=True, dir_okay=False))
@click.option("--team-id", type=int, help="Team receiving the roster (defaults to the first team).")
@click.option("--user-id", type=int, help="User recorded as the uploader.")
def importer_upload(file_path: Path, team_id: Optional[int], user_id: Optional[int]):
    """Store a roster file and create its import job."""
    team = Team.find_by_id(team_id) if team_id is not None else Team.get_default()
    if team is None:
        raise click.ClickException("No team found for the upload. Create a team or pass --team-id.")

    user = None
    if user_id is not None:
        user = db.session.get(User, user_id)
        if user is None:
            raise click.ClickException(f"User {user_id} not found.")

    service = RosterImportService()
    with file_path.open("rb") as handle:
        storage = FileStorage(stream=handle, filename=file_path.name)
        try:
            result = service.store_upload(storage, user, team)
        except ImportValidationError as exc:
            raise click.ClickException(_format_validation_error(exc)) from exc

    _echo_job(result.job, duplicate=result.duplicate, columns=result.columns)


@importer_cli.command("columns")
@with_appcontext
@click.argument("job_id", type=int)
def importer_columns(job_id: int):
    """List the columns detected in a job's upload."""
    service = RosterImportService()
    job = _load_job(service, job_id)
    try:
        columns = service.available_columns(job)
    except ImportValidationError as exc:
        raise click.ClickException(_format_validation_error(exc)) from exc
    click.echo(json.dumps({"job_id": job.id, "columns": columns}, indent=2))


@importer_cli.command("dry-run")
@with_appcontext
@click.argument("job_id", type=int)
@click.option(
    "--map",
    "mappings",
    multiple=True,
    required=True,
    help="Column mapping as FIELD=COLUMN; repeat for each field.",
)
def importer_dry_run(job_id: int, mappings: tuple[str, ...]):
    """Classify every row of a job without touching players."""
    service = RosterImportService()
    job = _load_job(service, job_id)
    column_map = _parse_column_map(mappings)
    try:
        summary = service.perform_dry_run(job, column_map)
    except ImportValidationError as exc:
        raise click.ClickException(_format_validation_error(exc)) from exc
    _echo_job(job, duration_seconds=round(summary.duration_seconds, 4))


@importer_cli.command("apply")
@with_appcontext
@click.argument("job_id", type=int)
def importer_apply(job_id: int):
    """Apply a job whose dry run is complete."""
    service = RosterImportService()
    job = _load_job(service, job_id)
    try:
        service.apply_import(job)
    except ImportValidationError as exc:
        raise click.ClickException(_format_validation_error(exc)) from exc
    except ImportApplyError as exc:
        raise click.ClickException(str(exc)) from exc
    _echo_job(job)


@importer_cli.command("finalize")
@with_appcontext
@click.argument("job_id", type=int)
def importer_finalize(job_id: int):
    """Recompute counts and the error report of a job."""
    service = RosterImportService()
    job = _load_job(service, job_id)
    service.finalize_import(job)
    _echo_job(job)
