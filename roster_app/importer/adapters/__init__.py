"""Importer adapters that turn stored uploads into raw spreadsheet rows."""

from __future__ import annotations

from .spreadsheet import UNREADABLE_FILE_MESSAGE, RawRow, SpreadsheetReadError, read_spreadsheet_rows

__all__ = [
    "RawRow",
    "SpreadsheetReadError",
    "UNREADABLE_FILE_MESSAGE",
    "read_spreadsheet_rows",
]
