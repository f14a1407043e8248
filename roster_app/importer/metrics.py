"""Prometheus metrics helpers for the roster importer."""

from __future__ import annotations

from typing import Literal, Mapping

from prometheus_client import Counter, Histogram

_upload_counter = Counter(
    "roster_importer_uploads_total",
    "Roster uploads received, by outcome.",
    ["outcome"],
)
_dry_run_counter = Counter(
    "roster_importer_dry_runs_total",
    "Roster dry runs executed, by status.",
    ["status"],
)
_dry_run_duration = Histogram(
    "roster_importer_dry_run_duration_seconds",
    "Duration of roster dry runs in seconds.",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
)
_rows_counter = Counter(
    "roster_importer_rows_total",
    "Roster rows classified during dry runs, by action.",
    ["action"],
)
_apply_counter = Counter(
    "roster_importer_applies_total",
    "Roster import applies, by status.",
    ["status"],
)


def record_upload(outcome: Literal["created", "duplicate", "invalid"]) -> None:
    """Increment the upload counter."""

    _upload_counter.labels(outcome=outcome).inc()


def record_dry_run(
    *,
    status: Literal["success", "invalid"],
    duration_seconds: float,
    action_counts: Mapping[str, int] | None = None,
) -> None:
    """Capture metrics for a dry run and the rows it classified."""

    _dry_run_counter.labels(status=status).inc()
    _dry_run_duration.observe(max(duration_seconds, 0.0))
    for action, count in (action_counts or {}).items():
        if count:
            _rows_counter.labels(action=action).inc(count)


def record_apply(status: Literal["success", "invalid", "failure"]) -> None:
    """Increment the apply counter."""

    _apply_counter.labels(status=status).inc()
