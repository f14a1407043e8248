"""
Registry of spreadsheet formats accepted by the roster importer.

Formats register metadata here so configuration validation can occur without
opening any files; the reader callables live in ``adapters.spreadsheet``.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence, Tuple


@dataclass(frozen=True)
class SpreadsheetFormat:
    """Metadata describing an accepted upload format."""

    name: str
    title: str
    reader: str
    dependencies: Tuple[str, ...] = ()
    summary: str | None = None


def get_format_registry() -> Mapping[str, SpreadsheetFormat]:
    """Return the registry of supported upload formats keyed by file extension."""
    return OrderedDict(
        (
            (
                "csv",
                SpreadsheetFormat(
                    name="csv",
                    title="CSV Flat File",
                    reader="csv",
                    summary="Comma-separated roster with a header row.",
                ),
            ),
            (
                "txt",
                SpreadsheetFormat(
                    name="txt",
                    title="Plain Text (CSV)",
                    reader="csv",
                    summary="Comma-separated roster saved with a .txt extension.",
                ),
            ),
            (
                "xlsx",
                SpreadsheetFormat(
                    name="xlsx",
                    title="Excel Workbook",
                    reader="xlsx",
                    dependencies=("openpyxl",),
                    summary="First worksheet of an Excel workbook with a header row.",
                ),
            ),
            (
                "json",
                SpreadsheetFormat(
                    name="json",
                    title="JSON Records",
                    reader="json",
                    summary="JSON array of keyed records or positional rows.",
                ),
            ),
        )
    )


def resolve_formats(
    configured: Sequence[str],
    registry: Mapping[str, SpreadsheetFormat] | None = None,
) -> Iterable[SpreadsheetFormat]:
    """
    Map configured format names to registry descriptors, raising on unknowns.
    """
    registry = registry or get_format_registry()
    unknown = sorted({name for name in configured if name not in registry})
    if unknown:
        raise ValueError(
            "Unknown importer formats configured: "
            + ", ".join(unknown)
            + ". Update IMPORTER_FORMATS or register these formats first."
        )
    return tuple(registry[name] for name in configured)
