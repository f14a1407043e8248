"""
Importer-specific SQLAlchemy models: import jobs and their computed rows.
"""

from .schema import ImportJob, ImportJobStatus, ImportRow, ImportRowAction

__all__ = [
    "ImportJob",
    "ImportJobStatus",
    "ImportRow",
    "ImportRowAction",
]
