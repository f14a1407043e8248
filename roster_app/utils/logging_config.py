# roster_app/utils/logging_config.py

"""
Application logging setup driven by the monitoring configuration.

``LOG_FORMAT=json`` emits one JSON object per record including any structured
``extra={...}`` fields passed by the importer; ``text`` is a readable
single-line format for development.
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler

# Attributes present on every LogRecord; anything else came from ``extra``.
_RESERVED_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_HANDLER_MARKER = "_roster_app_handler"


class JSONFormatter(logging.Formatter):
    """Serialize log records, and their extra fields, as JSON lines."""

    def __init__(self, app_name=None, app_version=None):
        super().__init__()
        self.app_name = app_name
        self.app_version = app_version

    def format(self, record):
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.app_name:
            payload["app"] = self.app_name
        if self.app_version:
            payload["version"] = self.app_version
        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_ATTRS or key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _build_formatter(config):
    if str(config.get("LOG_FORMAT", "text")).lower() == "json":
        return JSONFormatter(config.get("APP_NAME"), config.get("APP_VERSION"))
    return logging.Formatter(TEXT_FORMAT)


def _remove_managed_handlers(logger):
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()


def setup_logging(app):
    """
    Configure ``app.logger`` from ``LOG_*`` settings.

    Safe to call repeatedly: handlers installed by a previous call are
    replaced rather than duplicated.
    """
    config = app.config
    level_name = str(config.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    formatter = _build_formatter(config)

    logger = app.logger
    _remove_managed_handlers(logger)
    logger.setLevel(level)

    if config.get("ENABLE_CONSOLE_LOGGING", True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.setLevel(level)
        setattr(console_handler, _HANDLER_MARKER, True)
        logger.addHandler(console_handler)

    if config.get("ENABLE_FILE_LOGGING", False):
        log_dir = config.get("LOG_DIR", "logs")
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "roster_app.log"),
            maxBytes=int(config.get("LOG_FILE_MAX_BYTES", 10485760)),
            backupCount=int(config.get("LOG_FILE_BACKUP_COUNT", 10)),
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        setattr(file_handler, _HANDLER_MARKER, True)
        logger.addHandler(file_handler)

    logger.debug("Logging configured (level=%s, format=%s)", level_name, config.get("LOG_FORMAT", "text"))
    return logger
