"""
Roster import JSON API: upload, dry run, apply, and error report download.
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request, send_file
from flask_login import current_user
from sqlalchemy.exc import NoResultFound

from roster_app.models import Team
from roster_app.utils.importer import get_importer_formats, get_max_upload_bytes, is_importer_enabled

from .errors import ErrorReportNotFound, ImportApplyError, ImportValidationError
from .metrics import record_upload
from .serializers import serialize_job
from .service import RosterImportService
from .utils import allowed_file

importer_blueprint = Blueprint("roster_imports", __name__, url_prefix="/api")

FILE_REQUIRED_MESSAGE = "The file field is required."
COLUMN_MAP_REQUIRED_MESSAGE = "The column map field is required."
TEAM_INVALID_MESSAGE = "The selected team is invalid."

_service = RosterImportService()


def _json_error(message: str, status: HTTPStatus):
    return jsonify({"message": message}), status


def _validation_error(exc: ImportValidationError):
    return jsonify(exc.as_dict()), HTTPStatus.UNPROCESSABLE_ENTITY


def _ensure_importer_enabled_api():
    if not is_importer_enabled(current_app):
        return _json_error("Importer is disabled.", HTTPStatus.NOT_FOUND)
    return None


def _ensure_authenticated_api():
    if not current_user.is_authenticated:
        return _json_error("Unauthenticated.", HTTPStatus.UNAUTHORIZED)
    return None


@importer_blueprint.before_request
def _guard_importer_api():
    return _ensure_importer_enabled_api() or _ensure_authenticated_api()


def _load_job(job_id: int):
    try:
        return _service.get_job(job_id), None
    except NoResultFound:
        return None, _json_error(f"Import job {job_id} not found.", HTTPStatus.NOT_FOUND)


def _validate_upload(file_storage) -> None:
    if file_storage is None or file_storage.filename == "":
        raise ImportValidationError.for_field("file", FILE_REQUIRED_MESSAGE)

    formats = get_importer_formats(current_app)
    if not allowed_file(file_storage.filename, formats):
        raise ImportValidationError.for_field("file", f"The file must be a file of type: {', '.join(formats)}.")

    max_bytes = get_max_upload_bytes(current_app)
    content_length = getattr(file_storage, "content_length", None) or request.content_length
    if content_length and content_length > max_bytes:
        raise OverflowError("Upload exceeds maximum size limit.")

    if not content_length:
        position = file_storage.stream.tell()
        file_storage.stream.seek(0, 2)
        size_bytes = file_storage.stream.tell()
        file_storage.stream.seek(position)
        if size_bytes > max_bytes:
            raise OverflowError("Upload exceeds maximum size limit.")


def _resolve_team() -> Team:
    raw_team_id = request.form.get("team_id")
    if raw_team_id in (None, ""):
        team = Team.get_default()
    else:
        try:
            team = Team.find_by_id(int(raw_team_id))
        except (TypeError, ValueError):
            team = None
    if team is None:
        raise ImportValidationError.for_field("team_id", TEAM_INVALID_MESSAGE)
    return team


@importer_blueprint.get("/imports")
def list_imports():
    jobs = _service.list_recent_jobs()
    return jsonify({"data": [serialize_job(job) for job in jobs]}), HTTPStatus.OK


@importer_blueprint.post("/imports")
def create_import():
    file_storage = request.files.get("file")
    try:
        _validate_upload(file_storage)
        team = _resolve_team()
        result = _service.store_upload(file_storage, current_user, team)
    except OverflowError as exc:
        record_upload("invalid")
        return _json_error(str(exc), HTTPStatus.REQUEST_ENTITY_TOO_LARGE)
    except ImportValidationError as exc:
        return _validation_error(exc)

    status = HTTPStatus.OK if result.duplicate else HTTPStatus.CREATED
    payload = {
        "data": serialize_job(result.job),
        "meta": {"duplicate": result.duplicate, "columns": result.columns},
    }
    return jsonify(payload), status


@importer_blueprint.post("/imports/<int:job_id>/dry-run")
def dry_run_import(job_id: int):
    job, error_response = _load_job(job_id)
    if error_response:
        return error_response

    body = request.get_json(silent=True) or {}
    column_map = body.get("column_map") if isinstance(body, dict) else None
    if not isinstance(column_map, dict) or not column_map:
        return _validation_error(ImportValidationError.for_field("column_map", COLUMN_MAP_REQUIRED_MESSAGE))

    try:
        _service.perform_dry_run(job, column_map)
    except ImportValidationError as exc:
        return _validation_error(exc)

    return jsonify({"data": serialize_job(job, include_rows=True)}), HTTPStatus.OK


@importer_blueprint.post("/imports/<int:job_id>/apply")
def apply_import(job_id: int):
    job, error_response = _load_job(job_id)
    if error_response:
        return error_response

    try:
        _service.apply_import(job)
    except ImportValidationError as exc:
        return _validation_error(exc)
    except ImportApplyError as exc:
        return (
            jsonify({"message": str(exc), "errors": {"import": [str(exc)]}}),
            HTTPStatus.CONFLICT,
        )

    return jsonify({"data": serialize_job(job, include_rows=True)}), HTTPStatus.OK


@importer_blueprint.get("/imports/<int:job_id>/errors")
def download_import_errors(job_id: int):
    job, error_response = _load_job(job_id)
    if error_response:
        return error_response

    try:
        path = _service.resolve_error_report(job)
    except ErrorReportNotFound as exc:
        return _json_error(str(exc), HTTPStatus.NOT_FOUND)

    return send_file(path, mimetype="text/csv", as_attachment=True, download_name=path.name)
