"""Canonical import contract helpers."""

from __future__ import annotations

from .roster import ROSTER_FIELDS, FieldSpec, get_field_names, get_required_fields

__all__ = [
    "FieldSpec",
    "ROSTER_FIELDS",
    "get_field_names",
    "get_required_fields",
]
