import hashlib
import re

import pytest

from roster_app.importer.errors import ImportValidationError
from roster_app.models import ImportJob, ImportJobStatus, Player, db


def _stored_files(tmp_path):
    upload_root = tmp_path / "uploads"
    if not upload_root.exists():
        return []
    return [path for path in upload_root.rglob("*") if path.is_file()]


def test_store_upload_creates_pending_job(service, make_storage, roster_csv, test_user, test_team, tmp_path):
    result = service.store_upload(make_storage(roster_csv, "My Roster.csv"), test_user, test_team)

    job = result.job
    assert result.duplicate is False
    assert result.columns == ["Name", "Email", "Jersey", "Position"]
    assert job.status == ImportJobStatus.PENDING
    assert job.original_filename == "My Roster.csv"
    assert job.user_id == test_user.id
    assert job.file_hash == hashlib.sha256(roster_csv.encode("utf-8")).hexdigest()
    assert re.fullmatch(rf"imports/{test_team.id}/[0-9a-f]{{32}}_My_Roster\.csv", job.stored_path)
    assert (tmp_path / "uploads" / job.stored_path).read_text(encoding="utf-8") == roster_csv


def test_store_upload_returns_existing_job_for_same_content(service, make_storage, roster_csv, test_user, test_team):
    first = service.store_upload(make_storage(roster_csv), test_user, test_team)

    second = service.store_upload(make_storage(roster_csv, "renamed.csv"), test_user, test_team)

    assert second.duplicate is True
    assert second.job.id == first.job.id
    assert second.columns == ["Name", "Email", "Jersey", "Position"]
    assert ImportJob.query.count() == 1


def test_same_content_for_another_team_is_a_new_job(
    service, make_storage, roster_csv, test_user, test_team, other_team
):
    first = service.store_upload(make_storage(roster_csv), test_user, test_team)

    second = service.store_upload(make_storage(roster_csv), test_user, other_team)

    assert second.duplicate is False
    assert second.job.id != first.job.id


def test_unreadable_upload_creates_no_job(service, make_storage, test_user, test_team, tmp_path):
    with pytest.raises(ImportValidationError) as excinfo:
        service.store_upload(make_storage(b"not a workbook", "roster.xlsx"), test_user, test_team)

    assert excinfo.value.messages == {
        "file": ["Failed to read the uploaded file. Please ensure it is a valid CSV or XLSX."]
    }
    assert ImportJob.query.count() == 0
    assert _stored_files(tmp_path) == []


def test_concurrent_duplicate_upload_returns_winner(
    service, make_storage, roster_csv, test_user, test_team, monkeypatch, tmp_path
):
    winner = service.store_upload(make_storage(roster_csv), test_user, test_team).job
    real_find = service.find_by_hash
    calls = []

    def _miss_first(team, file_hash):
        calls.append(file_hash)
        if len(calls) == 1:
            return None
        return real_find(team, file_hash)

    monkeypatch.setattr(service, "find_by_hash", _miss_first)

    result = service.store_upload(make_storage(roster_csv), test_user, test_team)

    assert result.duplicate is True
    assert result.job.id == winner.id
    assert len(_stored_files(tmp_path)) == 1


def test_list_recent_jobs_newest_first_with_limit(app, service, upload_job):
    jobs = [upload_job(f"Name,Email\nPlayer {index},p{index}@example.com\n") for index in range(3)]

    assert [job.id for job in service.list_recent_jobs()] == [job.id for job in reversed(jobs)]
    app.config["IMPORTER_RECENT_JOBS_LIMIT"] = 2
    assert len(service.list_recent_jobs()) == 2
    assert len(service.list_recent_jobs(limit=1)) == 1


def test_apply_import_finalizes_counts(service, upload_job, column_map, existing_player, problem_roster_csv):
    job = upload_job(problem_roster_csv)
    service.perform_dry_run(job, column_map)

    service.apply_import(job)

    assert job.status == ImportJobStatus.COMPLETED
    assert job.counts == {"total": 4, "created": 1, "updated": 1, "errors": 2}
    assert job.error_report_path is not None
    assert service.resolve_error_report(job).is_file()
    assert Player.query.filter_by(team_id=job.team_id).count() == 2


def test_available_columns_reads_stored_upload(service, upload_job):
    job = upload_job()

    assert service.available_columns(job) == ["Name", "Email", "Jersey", "Position"]
    db.session.expire_all()
    assert service.get_job(job.id).id == job.id
