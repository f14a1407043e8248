"""
Row-level validation rules for roster payloads.

Validation never raises: every problem is reported in an error bag mapping a
field name to its ordered messages, and a non-empty bag turns the row into an
``error`` row during reconciliation.
"""

from __future__ import annotations

import re
from typing import Iterator, Mapping

from email_validator import EmailNotValidError, validate_email

NAME_MAX_LENGTH = 255
_JERSEY_REGEX = re.compile(r"^[0-9]{1,5}$")

NAME_REQUIRED_MESSAGE = "Player name is required."
NAME_TOO_LONG_MESSAGE = "Player name must be less than 255 characters."
EMAIL_REQUIRED_MESSAGE = "Email is required."
EMAIL_INVALID_MESSAGE = "Email format is invalid."
EMAIL_DUPLICATE_MESSAGE = "Duplicate email found in upload."
JERSEY_NUMERIC_MESSAGE = "Jersey must be numeric."

ErrorBag = dict[str, list[str]]


class SeenEmails:
    """Emails already claimed by a valid row earlier in the same upload."""

    def __init__(self) -> None:
        self._emails: set[str] = set()

    def __contains__(self, email: object) -> bool:
        return email in self._emails

    def __len__(self) -> int:
        return len(self._emails)

    def __iter__(self) -> Iterator[str]:
        return iter(self._emails)

    def add(self, email: str) -> None:
        self._emails.add(email)


def is_valid_email(email: str) -> bool:
    try:
        validate_email(
            email,
            check_deliverability=False,
            globally_deliverable=False,
            allow_smtputf8=False,
        )
    except EmailNotValidError:
        return False
    return True


def _blank(value: str | None) -> bool:
    return value is None or value.strip() == ""


def validate_payload(payload: Mapping[str, str | None], seen_emails: SeenEmails) -> ErrorBag:
    """
    Validate one normalized payload.

    A payload that passes every rule registers its email in ``seen_emails``
    so later rows reusing it are reported as duplicates.
    """

    errors: ErrorBag = {}

    name = payload.get("full_name")
    email = payload.get("email")
    jersey = payload.get("jersey")

    if _blank(name):
        errors.setdefault("full_name", []).append(NAME_REQUIRED_MESSAGE)
    elif len(name) > NAME_MAX_LENGTH:
        errors.setdefault("full_name", []).append(NAME_TOO_LONG_MESSAGE)

    if _blank(email):
        errors.setdefault("email", []).append(EMAIL_REQUIRED_MESSAGE)
    elif not is_valid_email(email):
        errors.setdefault("email", []).append(EMAIL_INVALID_MESSAGE)
    elif email in seen_emails:
        errors.setdefault("email", []).append(EMAIL_DUPLICATE_MESSAGE)

    if jersey is not None and jersey != "" and not _JERSEY_REGEX.match(jersey):
        errors.setdefault("jersey", []).append(JERSEY_NUMERIC_MESSAGE)

    if not errors and email is not None:
        seen_emails.add(email)

    return errors
