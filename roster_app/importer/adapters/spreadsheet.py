"""Spreadsheet readers for roster uploads.

Each reader returns the raw row sequence exactly as stored: positional rows
(lists, header row included) for CSV and XLSX, and either keyed rows (dicts)
or positional rows for JSON. Shape detection and header handling happen in
``pipeline.columns``.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Callable

from openpyxl import load_workbook

from roster_app.importer.registry import get_format_registry

RawRow = list[Any] | dict[Any, Any]

UNREADABLE_FILE_MESSAGE = "Failed to read the uploaded file. Please ensure it is a valid CSV or XLSX."


class SpreadsheetReadError(Exception):
    """Raised when an uploaded file cannot be parsed into rows."""

    def __init__(self, path: Path | str, reason: str | None = None) -> None:
        detail = f" ({reason})" if reason else ""
        super().__init__(f"Unable to read spreadsheet {path}{detail}")
        self.path = str(path)
        self.reason = reason


def _read_csv(path: Path) -> list[RawRow]:
    with path.open("r", encoding="utf-8", newline="") as handle:
        return [list(record) for record in csv.reader(handle)]


def _trim_trailing_empty(values: tuple[Any, ...]) -> list[Any]:
    cells = list(values)
    while cells and cells[-1] is None:
        cells.pop()
    return cells


def _read_xlsx(path: Path) -> list[RawRow]:
    workbook = load_workbook(filename=str(path), read_only=True, data_only=True)
    try:
        worksheet = workbook.worksheets[0] if workbook.worksheets else None
        if worksheet is None:
            return []
        return [_trim_trailing_empty(values) for values in worksheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _read_json(path: Path) -> list[RawRow]:
    with path.open("r", encoding="utf-8-sig") as handle:
        document = json.load(handle)
    if not isinstance(document, list):
        raise ValueError("JSON upload must contain an array of rows.")
    rows: list[RawRow] = []
    for entry in document:
        if isinstance(entry, dict):
            rows.append(dict(entry))
        elif isinstance(entry, list):
            rows.append(list(entry))
        else:
            raise ValueError("JSON rows must be objects or arrays.")
    return rows


_READERS: dict[str, Callable[[Path], list[RawRow]]] = {
    "csv": _read_csv,
    "xlsx": _read_xlsx,
    "json": _read_json,
}


def read_spreadsheet_rows(path: Path | str) -> list[RawRow]:
    """
    Load every row from a stored upload.

    Raises:
        SpreadsheetReadError: the extension is unsupported or parsing failed
            for any reason.
    """

    file_path = Path(path)
    extension = file_path.suffix.lstrip(".").lower()
    descriptor = get_format_registry().get(extension)
    if descriptor is None:
        raise SpreadsheetReadError(file_path, f"unsupported extension '{extension or 'none'}'")

    reader = _READERS[descriptor.reader]
    try:
        return reader(file_path)
    except Exception as exc:
        raise SpreadsheetReadError(file_path, str(exc)) from exc
