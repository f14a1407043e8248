"""Canonical roster import contract.

Single source of truth for the player fields an operator can map spreadsheet
columns onto, shared by column resolution, payload extraction, validation and
the error report.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class FieldSpec:
    """Metadata describing a mappable player field."""

    name: str
    description: str
    required: bool = False


ROSTER_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec(
        name="full_name",
        description="Player display name.",
        required=True,
    ),
    FieldSpec(
        name="email",
        description="Player email address; identifies the player within a team.",
        required=True,
    ),
    FieldSpec(
        name="jersey",
        description="Jersey number (1-5 digits).",
        required=False,
    ),
    FieldSpec(
        name="position",
        description="Playing position.",
        required=False,
    ),
)


def get_field_names() -> Tuple[str, ...]:
    """Return roster field names in canonical order."""

    return tuple(field.name for field in ROSTER_FIELDS)


def get_required_fields() -> Tuple[str, ...]:
    """Return the fields that must be mapped before a dry run can start."""

    return tuple(field.name for field in ROSTER_FIELDS if field.required)
