import pytest

from roster_app.importer.errors import ErrorReportNotFound
from roster_app.importer.pipeline import (
    build_error_report_csv,
    escape_for_csv,
    generate_error_report,
    perform_dry_run,
    resolve_error_report,
)
from roster_app.models import ImportRow, ImportRowAction, db


@pytest.mark.parametrize(
    "value, expected",
    [
        ("plain", "plain"),
        ("Morgan, Alex", '"Morgan, Alex"'),
        ('The "Boss"', '"The ""Boss"""'),
        ("two\nlines", '"two\nlines"'),
        ("", ""),
    ],
)
def test_escape_for_csv(value, expected):
    assert escape_for_csv(value) == expected


def test_build_error_report_csv_flattens_messages():
    rows = [
        ImportRow(
            row_number=4,
            action=ImportRowAction.ERROR,
            payload={"full_name": "", "email": "", "jersey": "abc", "position": "Defender"},
            errors={
                "full_name": ["Player name is required."],
                "email": ["Email is required."],
                "jersey": ["Jersey must be numeric."],
            },
        ),
        ImportRow(
            row_number=5,
            action=ImportRowAction.ERROR,
            payload={"full_name": "Another, Player", "email": "alex@example.com", "jersey": None},
            errors={"email": ["Duplicate email found in upload."]},
        ),
    ]

    assert build_error_report_csv(rows) == (
        "row_number,full_name,email,jersey,position,errors\n"
        "4,,,abc,Defender,Player name is required.; Email is required.; Jersey must be numeric.\n"
        '5,"Another, Player",alex@example.com,,,Duplicate email found in upload.'
    )


def test_generate_error_report_writes_only_error_rows(upload_job, column_map, problem_roster_csv, tmp_path):
    job = upload_job(problem_roster_csv)
    perform_dry_run(job, column_map)

    relative_path = generate_error_report(job)
    db.session.commit()

    assert relative_path == job.error_report_path
    lines = (tmp_path / "artifacts" / relative_path).read_text(encoding="utf-8").split("\n")
    assert lines[0] == "row_number,full_name,email,jersey,position,errors"
    assert [line.split(",", 1)[0] for line in lines[1:]] == ["4", "5"]
    assert resolve_error_report(job) == tmp_path / "artifacts" / relative_path


def test_dry_run_removes_stale_report(upload_job, column_map, problem_roster_csv, tmp_path):
    job = upload_job(problem_roster_csv)
    perform_dry_run(job, column_map)
    relative_path = generate_error_report(job)
    db.session.commit()

    perform_dry_run(job, column_map)

    assert job.error_report_path is None
    assert not (tmp_path / "artifacts" / relative_path).exists()


def test_generate_error_report_without_errors_returns_none(upload_job, column_map):
    job = upload_job()
    perform_dry_run(job, column_map)

    assert generate_error_report(job) is None
    assert job.error_report_path is None


def test_resolve_error_report_raises_when_missing(upload_job, column_map, problem_roster_csv, tmp_path):
    job = upload_job(problem_roster_csv)

    with pytest.raises(ErrorReportNotFound):
        resolve_error_report(job)

    perform_dry_run(job, column_map)
    relative_path = generate_error_report(job)
    (tmp_path / "artifacts" / relative_path).unlink()

    with pytest.raises(ErrorReportNotFound):
        resolve_error_report(job)
