"""
Roster import pipeline: column resolution, row reconciliation, apply, and reporting.
"""

from .apply import DRY_RUN_REQUIRED_MESSAGE, apply_import, finalize_import
from .columns import (
    ColumnResolution,
    ColumnSelector,
    RowShape,
    SelectorMode,
    detect_row_shape,
    discover_columns,
    normalize_column_identifier,
    resolve_column_selectors,
)
from .dry_run import (
    ALREADY_APPLIED_MESSAGE,
    EMPTY_FILE_MESSAGE,
    DryRunSummary,
    ReconciliationResult,
    RowOutcome,
    load_job_rows,
    perform_dry_run,
    reconcile_rows,
)
from .report import build_error_report_csv, escape_for_csv, generate_error_report, resolve_error_report
from .rows import coerce_cell, extract_payload
from .validation import SeenEmails, validate_payload

__all__ = [
    "ALREADY_APPLIED_MESSAGE",
    "ColumnResolution",
    "ColumnSelector",
    "DRY_RUN_REQUIRED_MESSAGE",
    "DryRunSummary",
    "EMPTY_FILE_MESSAGE",
    "ReconciliationResult",
    "RowOutcome",
    "RowShape",
    "SeenEmails",
    "SelectorMode",
    "apply_import",
    "build_error_report_csv",
    "coerce_cell",
    "detect_row_shape",
    "discover_columns",
    "escape_for_csv",
    "extract_payload",
    "finalize_import",
    "generate_error_report",
    "load_job_rows",
    "normalize_column_identifier",
    "perform_dry_run",
    "reconcile_rows",
    "resolve_column_selectors",
    "resolve_error_report",
    "validate_payload",
]
