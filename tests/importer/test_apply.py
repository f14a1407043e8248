import pytest

from roster_app.importer.errors import ImportApplyError, ImportStateError
from roster_app.importer.pipeline import apply_import, finalize_import, perform_dry_run
from roster_app.models import ImportJobStatus, ImportRow, ImportRowAction, Player, db


def _ready_job(upload_job, column_map, content=None):
    job = upload_job(content)
    perform_dry_run(job, column_map)
    return job


def test_apply_requires_ready_job(upload_job):
    job = upload_job()

    with pytest.raises(ImportStateError) as excinfo:
        apply_import(job)

    assert excinfo.value.messages == {"import": ["Dry-run must be completed before applying the import."]}
    assert job.status == ImportJobStatus.PENDING


def test_apply_creates_players_and_completes_job(upload_job, column_map, test_team):
    job = _ready_job(upload_job, column_map)

    apply_import(job)

    assert job.status == ImportJobStatus.COMPLETED
    assert job.processed_at is not None
    players = Player.query.filter_by(team_id=test_team.id).order_by(Player.email).all()
    assert [player.email for player in players] == ["alex@example.com", "sam@example.com"]
    assert players[0].jersey == "13"
    rows = ImportRow.query.filter_by(job_id=job.id).all()
    assert {row.player_id for row in rows} == {player.id for player in players}


def test_apply_updates_existing_player_and_skips_error_rows(
    upload_job, column_map, existing_player, problem_roster_csv, test_team
):
    job = _ready_job(upload_job, column_map, problem_roster_csv)

    apply_import(job)

    db.session.refresh(existing_player)
    assert existing_player.full_name == "Sam Kerr"
    assert existing_player.jersey == "9"
    assert existing_player.position == "Forward"
    assert Player.query.filter_by(team_id=test_team.id).count() == 2
    assert Player.query.filter_by(full_name="Another").count() == 0


def test_apply_is_rejected_once_completed(upload_job, column_map):
    job = _ready_job(upload_job, column_map)
    apply_import(job)

    with pytest.raises(ImportStateError):
        apply_import(job)


def test_update_row_becomes_create_when_player_vanished(upload_job, column_map, existing_player, test_team):
    job = _ready_job(upload_job, column_map)
    row = ImportRow.query.filter_by(job_id=job.id, row_number=3).one()
    assert row.action == ImportRowAction.UPDATE

    db.session.delete(existing_player)
    db.session.commit()

    apply_import(job)

    row = ImportRow.query.filter_by(job_id=job.id, row_number=3).one()
    assert row.action == ImportRowAction.CREATE
    player = Player.query.filter_by(team_id=test_team.id, email="sam@example.com").one()
    assert row.player_id == player.id
    assert player.jersey == "9"


def test_apply_rolls_back_every_write_on_failure(upload_job, column_map, test_team):
    job = _ready_job(upload_job, column_map)
    # Row 3 still plans a create, so its insert hits the unique email constraint.
    db.session.add(Player(team_id=test_team.id, full_name="Sam Kerr", email="sam@example.com"))
    db.session.commit()

    with pytest.raises(ImportApplyError) as excinfo:
        apply_import(job)

    assert excinfo.value.job_id == job.id
    assert job.status == ImportJobStatus.READY
    assert job.processed_at is None
    assert Player.query.filter_by(email="alex@example.com").count() == 0
    assert Player.query.filter_by(team_id=test_team.id).count() == 1
    assert all(row.player_id is None for row in ImportRow.query.filter_by(job_id=job.id))


def test_finalize_refreshes_counts_and_writes_report(
    app, upload_job, column_map, existing_player, problem_roster_csv, tmp_path
):
    job = _ready_job(upload_job, column_map, problem_roster_csv)
    apply_import(job)

    finalize_import(job)

    assert job.counts == {"total": 4, "created": 1, "updated": 1, "errors": 2}
    assert job.error_report_path == f"imports/{job.team_id}/reports/import_{job.id}_errors.csv"
    report = tmp_path / "artifacts" / job.error_report_path
    assert report.is_file()


def test_finalize_is_idempotent(upload_job, column_map, existing_player, problem_roster_csv, tmp_path):
    job = _ready_job(upload_job, column_map, problem_roster_csv)
    apply_import(job)
    finalize_import(job)
    first_counts = job.counts
    report = tmp_path / "artifacts" / job.error_report_path
    first_content = report.read_text(encoding="utf-8")

    finalize_import(job)

    assert job.counts == first_counts
    assert report.read_text(encoding="utf-8") == first_content


def test_finalize_without_errors_has_no_report(upload_job, column_map):
    job = _ready_job(upload_job, column_map)
    apply_import(job)

    finalize_import(job)

    assert job.error_report_path is None
    assert job.counts == {"total": 2, "created": 2, "updated": 0, "errors": 0}
