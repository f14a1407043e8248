from __future__ import annotations

import io

import pytest
from werkzeug.datastructures import FileStorage

from roster_app.importer.service import RosterImportService


@pytest.fixture
def roster_csv() -> str:
    return (
        "Name,Email,Jersey,Position\n"
        "Alex Morgan,alex@example.com,13,Forward\n"
        "Sam Kerr,sam@example.com,9,Forward\n"
    )


@pytest.fixture
def problem_roster_csv() -> str:
    return (
        "Name,Email,Jersey,Position\n"
        "Alex Morgan,alex@example.com,13,Forward\n"
        "Sam Kerr,sam@example.com,9,Forward\n"
        ", ,abc,Defender\n"
        "Another,alex@example.com,10,Midfielder\n"
    )


@pytest.fixture
def column_map() -> dict[str, str]:
    return {
        "full_name": "Name",
        "email": "Email",
        "jersey": "Jersey",
        "position": "Position",
    }


@pytest.fixture
def make_storage():
    def _make(content: str | bytes, filename: str = "roster.csv") -> FileStorage:
        data = content.encode("utf-8") if isinstance(content, str) else content
        return FileStorage(stream=io.BytesIO(data), filename=filename)

    return _make


@pytest.fixture
def service(app):
    return RosterImportService()


@pytest.fixture
def upload_job(service, make_storage, roster_csv, test_team, test_user):
    """Store an upload through the service and return its job."""

    def _upload(content: str | bytes | None = None, filename: str = "roster.csv", team=None):
        storage = make_storage(roster_csv if content is None else content, filename)
        result = service.store_upload(storage, test_user, team or test_team)
        return result.job

    return _upload
