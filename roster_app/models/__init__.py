# roster_app/models/__init__.py
"""
Database models package
"""

from .base import BaseModel, db
from .importer import ImportJob, ImportJobStatus, ImportRow, ImportRowAction
from .player import Player
from .team import Team
from .user import User

__all__ = [
    "db",
    "BaseModel",
    "User",
    "Team",
    "Player",
    # Importer models
    "ImportJob",
    "ImportJobStatus",
    "ImportRow",
    "ImportRowAction",
]
