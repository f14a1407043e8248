import pytest

from roster_app.importer.errors import ImportStateError, ImportValidationError
from roster_app.importer.pipeline import perform_dry_run
from roster_app.models import ImportJobStatus, ImportRow, ImportRowAction, Player, db


def _rows(job):
    return db.session.query(ImportRow).filter_by(job_id=job.id).order_by(ImportRow.row_number).all()


def test_dry_run_classifies_rows_and_marks_job_ready(upload_job, column_map, test_team):
    job = upload_job()

    summary = perform_dry_run(job, column_map)

    assert (summary.total_rows, summary.created, summary.updated, summary.errors) == (2, 2, 0, 0)
    assert job.status == ImportJobStatus.READY
    assert job.column_map == column_map
    assert job.counts == {"total": 2, "created": 2, "updated": 0, "errors": 0}
    rows = _rows(job)
    assert [row.row_number for row in rows] == [2, 3]
    assert rows[0].payload == {
        "full_name": "Alex Morgan",
        "email": "alex@example.com",
        "jersey": "13",
        "position": "Forward",
    }
    assert all(row.action == ImportRowAction.CREATE for row in rows)
    assert Player.query.filter_by(team_id=test_team.id).count() == 0


def test_dry_run_matches_existing_players(upload_job, column_map, existing_player, problem_roster_csv):
    job = upload_job(problem_roster_csv)

    summary = perform_dry_run(job, column_map)

    assert (summary.total_rows, summary.created, summary.updated, summary.errors) == (4, 1, 1, 2)
    rows = {row.row_number: row for row in _rows(job)}
    assert rows[3].action == ImportRowAction.UPDATE
    assert rows[3].player_id == existing_player.id
    assert rows[4].action == ImportRowAction.ERROR
    assert set(rows[4].errors) == {"full_name", "email", "jersey"}
    assert rows[5].errors == {"email": ["Duplicate email found in upload."]}

    db.session.refresh(existing_player)
    assert existing_player.full_name == "Sam Kerr"
    assert existing_player.jersey == "20"


def test_dry_run_rerun_replaces_previous_rows(upload_job, column_map):
    job = upload_job()
    perform_dry_run(job, column_map)

    perform_dry_run(job, {"full_name": "Name", "email": "Email"})

    rows = _rows(job)
    assert len(rows) == 2
    assert rows[0].payload["jersey"] is None
    assert job.column_map == {"full_name": "Name", "email": "Email"}


def test_failed_dry_run_leaves_previous_result_untouched(upload_job, column_map):
    job = upload_job()
    perform_dry_run(job, column_map)

    with pytest.raises(ImportValidationError) as excinfo:
        perform_dry_run(job, {"full_name": "Name", "email": "Missing"})

    assert "column_map.email" in excinfo.value.messages
    assert job.status == ImportJobStatus.READY
    assert job.column_map == column_map
    assert len(_rows(job)) == 2


def test_dry_run_of_pending_job_with_bad_map_stays_pending(upload_job):
    job = upload_job()

    with pytest.raises(ImportValidationError):
        perform_dry_run(job, {"full_name": "Name"})

    assert job.status == ImportJobStatus.PENDING
    assert _rows(job) == []


def test_dry_run_rejects_empty_file(upload_job, column_map):
    job = upload_job("")

    with pytest.raises(ImportValidationError) as excinfo:
        perform_dry_run(job, column_map)

    assert excinfo.value.messages == {"file": ["The uploaded file is empty."]}


def test_dry_run_enforces_configured_row_cap(app, upload_job, column_map):
    app.config["IMPORTER_MAX_ROWS"] = 1
    job = upload_job()

    with pytest.raises(ImportValidationError) as excinfo:
        perform_dry_run(job, column_map)

    assert excinfo.value.messages == {"file": ["The roster is limited to 1 rows."]}
    assert job.status == ImportJobStatus.PENDING


def test_dry_run_header_only_file_has_no_rows(upload_job, column_map):
    job = upload_job("Name,Email,Jersey,Position\n")

    summary = perform_dry_run(job, column_map)

    assert summary.total_rows == 0
    assert job.status == ImportJobStatus.READY


def test_dry_run_rejects_completed_job(upload_job, column_map):
    job = upload_job()
    job.status = ImportJobStatus.COMPLETED
    db.session.commit()

    with pytest.raises(ImportStateError) as excinfo:
        perform_dry_run(job, column_map)

    assert excinfo.value.messages == {"import": ["This import has already been applied."]}


def test_dry_run_of_keyed_json_upload(upload_job):
    content = (
        '[{"Name": "Alex Morgan", "Email": "ALEX@example.com", "Jersey": 13},'
        ' {"Name": "", "Email": ""},'
        ' {"Name": "Sam Kerr", "Email": "sam@example.com", "Jersey": 9.0}]'
    )
    job = upload_job(content, filename="roster.json")

    summary = perform_dry_run(job, {"full_name": "name", "email": "email", "jersey": "jersey"})

    assert summary.total_rows == 2
    rows = _rows(job)
    assert [row.row_number for row in rows] == [2, 4]
    assert rows[0].payload["email"] == "alex@example.com"
    assert rows[1].payload["jersey"] == "9"
