"""
Roster importer feature package.

Provides conditional blueprint and CLI registration along with upload format
validation while remaining lightweight when the importer is disabled.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from flask import Flask

from roster_app.utils.importer import get_importer_formats, is_importer_enabled

from .cli import get_disabled_importer_group, importer_cli
from .registry import SpreadsheetFormat, get_format_registry, resolve_formats
from .service import RosterImportService, UploadResult
from .views import importer_blueprint

IMPORTER_EXTENSION_KEY = "importer"

__all__ = [
    "init_importer",
    "IMPORTER_EXTENSION_KEY",
    "RosterImportService",
    "UploadResult",
]


def _ensure_extension_state(app: Flask) -> dict:
    state = app.extensions.setdefault(
        IMPORTER_EXTENSION_KEY,
        {
            "enabled": False,
            "configured_formats": (),
            "active_formats": (),
        },
    )
    return state


def _set_cli(app: Flask, enabled: bool) -> None:
    """Register the appropriate CLI group based on flag state."""
    command_name = importer_cli.name
    if command_name in app.cli.commands:
        app.cli.commands.pop(command_name)

    if enabled:
        app.cli.add_command(importer_cli)
    else:
        app.cli.add_command(get_disabled_importer_group())


def init_importer(app: Flask) -> None:
    """
    Conditionally mount the importer blueprint and CLI based on configuration.

    Records importer state inside ``app.extensions['importer']``.

    Raises:
        ValueError: ``IMPORTER_FORMATS`` names a format that is not registered.
    """
    enabled = is_importer_enabled(app)
    configured_formats: Tuple[str, ...] = get_importer_formats(app)

    state = _ensure_extension_state(app)
    state.update({"enabled": enabled, "configured_formats": configured_formats})

    if not enabled:
        state["active_formats"] = ()
        _set_cli(app, enabled=False)
        app.logger.info("Importer disabled via IMPORTER_ENABLED flag; skipping registration.")
        return

    active_formats: Iterable[SpreadsheetFormat] = resolve_formats(configured_formats, get_format_registry())
    state["active_formats"] = tuple(active_formats)

    if importer_blueprint.name not in app.blueprints:
        app.register_blueprint(importer_blueprint)
    _set_cli(app, enabled=True)

    format_names = ", ".join(descriptor.name for descriptor in state["active_formats"]) or "none"
    app.logger.info("Importer enabled with formats: %s", format_names)
