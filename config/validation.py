# config/validation.py

"""
Environment variable validation for the roster import service.
Validates required environment variables at startup.
"""

import os
import sys
from typing import List, Tuple

from .base import _parse_format_list

_KNOWN_FORMATS = ("csv", "txt", "xlsx", "json")


def validate_environment(flask_env: str = None) -> Tuple[bool, List[str]]:
    """
    Validate required environment variables.

    Args:
        flask_env: Flask environment (development, production, testing)
                  If None, reads from FLASK_ENV environment variable

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    if flask_env is None:
        flask_env = os.environ.get("FLASK_ENV", "development")

    errors = []

    # Only validate in production
    if flask_env != "production":
        return True, []

    secret_key = os.environ.get("SECRET_KEY", "")
    if not secret_key or secret_key in ("your-secret-key", "your_secret_key"):
        errors.append(
            "SECRET_KEY is required in production and must not be the default value. "
            'Generate a secure key: python -c "import secrets; print(secrets.token_hex(32))"'
        )

    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        errors.append("DATABASE_URL is required in production. Set it to your PostgreSQL connection string.")

    raw_formats = os.environ.get("IMPORTER_FORMATS")
    if raw_formats is not None:
        unknown = [name for name in _parse_format_list(raw_formats) if name not in _KNOWN_FORMATS]
        if unknown:
            errors.append(
                f"IMPORTER_FORMATS contains unsupported formats: {', '.join(unknown)}. "
                f"Choose from: {', '.join(_KNOWN_FORMATS)}"
            )

    for name in ("IMPORTER_MAX_ROWS", "IMPORTER_MAX_UPLOAD_MB", "IMPORTER_RECENT_JOBS_LIMIT"):
        raw_value = os.environ.get(name)
        if raw_value is None:
            continue
        if not raw_value.strip().isdigit() or int(raw_value) < 1:
            errors.append(f"{name} must be a positive integer (got '{raw_value}').")

    is_valid = len(errors) == 0
    return is_valid, errors


def validate_and_exit(flask_env: str = None) -> None:
    """
    Validate environment variables and exit with error if validation fails.
    Intended to be called at application startup.

    Args:
        flask_env: Flask environment (development, production, testing)
    """
    is_valid, errors = validate_environment(flask_env)

    if not is_valid:
        print("=" * 80, file=sys.stderr)
        print("ENVIRONMENT VALIDATION FAILED", file=sys.stderr)
        print("=" * 80, file=sys.stderr)
        print("\nThe following environment variables are missing or invalid:\n", file=sys.stderr)

        for i, error in enumerate(errors, 1):
            print(f"{i}. {error}", file=sys.stderr)

        print("\n" + "=" * 80, file=sys.stderr)
        print("Please check your .env file or environment variables.", file=sys.stderr)
        print("=" * 80, file=sys.stderr)

        sys.exit(1)
