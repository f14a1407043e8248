"""Payload extraction for a single spreadsheet row."""

from __future__ import annotations

from typing import Any, Mapping

from roster_app.importer.contracts import get_field_names

from .columns import ColumnSelector

RosterPayload = dict[str, str | None]

_TRIMMED_FIELDS = ("full_name", "email", "position")


def coerce_cell(value: Any) -> str | None:
    """
    Convert a raw cell into trimmed text.

    Strings are trimmed, numbers become their string form (integral floats
    drop the ``.0`` spreadsheets add), and anything else is ``None``.
    """

    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    return None


def extract_payload(row: Any, selectors: Mapping[str, ColumnSelector]) -> RosterPayload | None:
    """
    Build the normalized roster payload for ``row``.

    Returns ``None`` when every field is empty so the caller can skip the row
    entirely. Unmapped fields are present with a ``None`` value.
    """

    payload: RosterPayload = {field: None for field in get_field_names()}

    for field, selector in selectors.items():
        value = coerce_cell(selector.read(row))

        if field == "jersey" and value == "":
            value = None

        if field in _TRIMMED_FIELDS:
            value = value.strip() if value is not None else None

        payload[field] = value

    if not any(payload.values()):
        return None

    if payload.get("email"):
        payload["email"] = payload["email"].lower()

    return payload
