"""
Domain exceptions raised by the roster importer.

Row-level data problems never surface here; they are recorded on the
``ImportRow`` as ``action=error``. These exceptions abort an operation as a
whole and carry field-addressable messages for the caller.
"""

from __future__ import annotations

from typing import Mapping, Sequence


class ImporterError(Exception):
    """Base exception for importer failures."""


class ImportValidationError(ImporterError):
    """
    Raised when user input prevents an operation from running.

    ``messages`` maps a field path (``file``, ``column_map.email``,
    ``import``) to an ordered list of human-readable messages.
    """

    def __init__(self, messages: Mapping[str, str | Sequence[str]]) -> None:
        normalized: dict[str, list[str]] = {}
        for field, value in messages.items():
            normalized[field] = [value] if isinstance(value, str) else list(value)
        self.messages = normalized
        super().__init__(self.first_message)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ImportValidationError":
        return cls({field: [message]})

    @property
    def first_message(self) -> str:
        for values in self.messages.values():
            if values:
                return values[0]
        return "The given data was invalid."

    def as_dict(self) -> dict[str, object]:
        return {"message": self.first_message, "errors": dict(self.messages)}


class ImportStateError(ImportValidationError):
    """Raised when a job is not in the lifecycle state an operation requires."""

    def __init__(self, message: str) -> None:
        super().__init__({"import": [message]})


class ImportApplyError(ImporterError):
    """Raised when the apply transaction failed and was rolled back."""

    def __init__(self, job_id: int, reason: str) -> None:
        super().__init__(f"Import job {job_id} could not be applied; no changes were saved. {reason}")
        self.job_id = job_id
        self.reason = reason


class ErrorReportNotFound(ImporterError):
    """Raised when a job has no generated error report on disk."""

    def __init__(self, job_id: int) -> None:
        super().__init__(f"Import job {job_id} has no error report.")
        self.job_id = job_id
