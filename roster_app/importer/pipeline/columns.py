"""
Column discovery and column selector resolution for roster uploads.

Uploaded rows come in one of two shapes, decided once per file:

* ``RowShape.HEADER``: positional rows where the first row holds the
  headings (CSV, XLSX, JSON arrays).
* ``RowShape.KEYED``: mappings whose string keys already name the columns
  (JSON objects).

Resolution turns the operator's field -> column mapping into one
``ColumnSelector`` per field so row extraction never has to sniff the shape
again, and hands back the header-free data rows explicitly instead of
mutating the caller's sequence.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from roster_app.importer.contracts import get_field_names, get_required_fields
from roster_app.importer.errors import ImportValidationError

_BOM = "\ufeff"
_CONTROL_CHAR_PATTERN = re.compile(r"[\x00-\x1f\x7f]")
_DIGITS_PATTERN = re.compile(r"^\d+$")

HEADER_UNREADABLE_MESSAGE = "Unable to read the header row from the upload."
FIELD_REQUIRED_MESSAGE = "This field is required."


class RowShape(str, enum.Enum):
    HEADER = "header"
    KEYED = "keyed"


class SelectorMode(str, enum.Enum):
    INDEX = "index"
    KEY = "key"


def normalize_column_identifier(value: str) -> str:
    """Strip BOM and control characters, trim, and lower-case a column name."""

    token = value.lstrip(_BOM)
    token = _CONTROL_CHAR_PATTERN.sub("", token)
    return token.strip().lower()


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return ""
    return str(value)


def _flatten(value: Any) -> list[Any]:
    if isinstance(value, Mapping):
        value = list(value.values())
    if isinstance(value, (list, tuple)):
        flattened: list[Any] = []
        for item in value:
            flattened.extend(_flatten(item))
        return flattened
    return [value]


def _heading_text(value: Any) -> str:
    """Render a header cell, joining nested values with single spaces."""

    if isinstance(value, (list, tuple, Mapping)):
        return " ".join(_cell_text(item).strip() for item in _flatten(value))
    return _cell_text(value)


def _clean_label(value: str) -> str:
    return value.lstrip(_BOM).strip()


def _has_string_keys(row: Any) -> bool:
    return isinstance(row, Mapping) and any(isinstance(key, str) for key in row.keys())


def _iter_cells(row: Any):
    if isinstance(row, Mapping):
        return row.items()
    return enumerate(row)


def detect_row_shape(rows: Sequence[Any]) -> RowShape:
    """
    Decide the row shape from the first row.

    Raises:
        ImportValidationError: the first row is neither a mapping nor a row
            of cells.
    """

    first_row = rows[0] if rows else None
    if _has_string_keys(first_row):
        return RowShape.KEYED
    if isinstance(first_row, (list, tuple, Mapping)):
        return RowShape.HEADER
    raise ImportValidationError.for_field("file", HEADER_UNREADABLE_MESSAGE)


def discover_columns(rows: Sequence[Any]) -> list[str]:
    """Return the human-readable column names available for mapping."""

    if not rows:
        return []

    if detect_row_shape(rows) is RowShape.KEYED:
        columns: list[str] = []
        seen: set[str] = set()
        for row in rows:
            if not isinstance(row, Mapping):
                continue
            for key in row.keys():
                if not isinstance(key, str):
                    continue
                label = _clean_label(key)
                if label and label not in seen:
                    seen.add(label)
                    columns.append(label)
            if columns:
                break
        return columns

    header = rows[0]
    labels = (_clean_label(_heading_text(heading)) for _, heading in _iter_cells(header))
    return [label for label in labels if label]


@dataclass(frozen=True)
class ColumnSelector:
    """Resolved accessor binding one roster field to a spreadsheet column."""

    field: str
    mode: SelectorMode
    value: int | str
    normalized: str | None = None

    def read(self, row: Any) -> Any:
        """Return the raw cell for this field from ``row`` (``None`` when absent)."""

        if self.mode is SelectorMode.INDEX:
            if isinstance(row, Mapping):
                return row.get(self.value)
            if isinstance(row, (list, tuple)) and isinstance(self.value, int) and 0 <= self.value < len(row):
                return row[self.value]
            return None

        if not isinstance(row, Mapping):
            return None
        target = self.normalized or normalize_column_identifier(str(self.value))
        for key, value in row.items():
            if isinstance(key, str) and normalize_column_identifier(key) == target:
                return value
        return None


@dataclass(frozen=True)
class ColumnResolution:
    """Selectors for every mapped field plus the header-free data rows."""

    shape: RowShape
    selectors: Mapping[str, ColumnSelector]
    data_rows: tuple[Any, ...]
    available: tuple[str, ...] = ()


def _coerce_column_index(column: Any) -> int | None:
    if isinstance(column, bool):
        return None
    if isinstance(column, int):
        return column
    if isinstance(column, float) and column.is_integer():
        return int(column)
    if isinstance(column, str) and _DIGITS_PATTERN.match(column.strip()):
        return int(column.strip())
    return None


def _header_lookup(header: Any) -> dict[str, int | str]:
    lookup: dict[str, int | str] = {}
    for index, heading in _iter_cells(header):
        if heading is None:
            continue
        normalized = normalize_column_identifier(_heading_text(heading))
        if not normalized:
            continue
        lookup[normalized] = index
    return lookup


def _key_lookup(rows: Sequence[Any]) -> dict[str, int | str]:
    lookup: dict[str, int | str] = {}
    for row in rows:
        if isinstance(row, Mapping):
            for key in row.keys():
                if not isinstance(key, str):
                    continue
                normalized = normalize_column_identifier(key)
                if normalized:
                    lookup[normalized] = key
        if lookup:
            break
    return lookup


def resolve_column_selectors(column_map: Mapping[str, Any], rows: Sequence[Any]) -> ColumnResolution:
    """
    Resolve the operator's field -> column mapping against the uploaded rows.

    Mapping values may be a column name, a numeric column index, or empty
    (unmapped). Names are matched after normalization; a numeric value is
    used as a positional index without any lookup.

    Raises:
        ImportValidationError: a mapped column is missing from the file, or
            ``full_name``/``email`` ended up unmapped.
    """

    shape = detect_row_shape(rows)
    if shape is RowShape.KEYED:
        lookup = _key_lookup(rows)
        data_rows = tuple(rows)
        lookup_mode = SelectorMode.KEY
    else:
        lookup = _header_lookup(rows[0])
        data_rows = tuple(rows[1:])
        lookup_mode = SelectorMode.INDEX

    selectors: dict[str, ColumnSelector] = {}
    for field in get_field_names():
        column = column_map.get(field)
        if column is None or column == "":
            continue

        index = _coerce_column_index(column)
        if index is not None:
            selectors[field] = ColumnSelector(field=field, mode=SelectorMode.INDEX, value=index)
            continue

        label = _heading_text(column)
        normalized = normalize_column_identifier(label)
        if normalized not in lookup:
            available = ", ".join(lookup.keys())
            raise ImportValidationError.for_field(
                f"column_map.{field}",
                f"Column '{label}' was not found in the file header. Available columns: {available or 'none'}",
            )
        selectors[field] = ColumnSelector(
            field=field,
            mode=lookup_mode,
            value=lookup[normalized],
            normalized=normalized,
        )

    for required in get_required_fields():
        if required not in selectors:
            raise ImportValidationError.for_field(f"column_map.{required}", FIELD_REQUIRED_MESSAGE)

    return ColumnResolution(
        shape=shape,
        selectors=selectors,
        data_rows=data_rows,
        available=tuple(lookup.keys()),
    )
