"""
Utility helpers for importer feature flag checks.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from flask import current_app

DEFAULT_FORMATS: Tuple[str, ...] = ("csv", "txt", "xlsx", "json")


def _get_config(app=None):
    if app is not None:
        return app.config
    return current_app.config


def is_importer_enabled(app=None) -> bool:
    """Return True when the importer feature flag is enabled."""
    config = _get_config(app)
    return bool(config.get("IMPORTER_ENABLED", True))


def get_importer_formats(app=None) -> Tuple[str, ...]:
    """Return the configured upload extensions."""
    config = _get_config(app)
    formats: Iterable[str] = config.get("IMPORTER_FORMATS", DEFAULT_FORMATS)
    return tuple(formats)


def get_max_upload_bytes(app=None) -> int:
    config = _get_config(app)
    mb_limit = config.get("IMPORTER_MAX_UPLOAD_MB", 10)
    try:
        return int(mb_limit) * 1024 * 1024
    except (TypeError, ValueError):
        return 10 * 1024 * 1024
