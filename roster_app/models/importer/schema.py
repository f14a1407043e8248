"""
SQLAlchemy models for roster import jobs and their per-row outcomes.

A job records one uploaded spreadsheet through its lifecycle
(pending -> ready -> completed). Its rows hold the outcome of the latest dry
run and are replaced wholesale every time the dry run is recomputed.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Enum, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..base import BaseModel, db


class ImportJobStatus(str, enum.Enum):
    """Lifecycle states for an import job."""

    PENDING = "pending"
    READY = "ready"
    COMPLETED = "completed"
    FAILED = "failed"


class ImportRowAction(str, enum.Enum):
    """Outcome assigned to a spreadsheet row by the dry run."""

    CREATE = "create"
    UPDATE = "update"
    ERROR = "error"


class ImportJob(BaseModel):
    """One uploaded roster file and the counts from its latest computation."""

    __tablename__ = "import_jobs"

    id: Mapped[int] = mapped_column(primary_key=True)
    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    original_filename: Mapped[str] = mapped_column(db.String(255), nullable=False)
    stored_path: Mapped[str] = mapped_column(db.String(500), nullable=False)
    file_hash: Mapped[str] = mapped_column(db.String(64), nullable=False, index=True)
    status: Mapped[ImportJobStatus] = mapped_column(
        Enum(ImportJobStatus, name="import_job_status_enum"),
        nullable=False,
        default=ImportJobStatus.PENDING,
        index=True,
    )
    total_rows: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)
    created_count: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)
    updated_count: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)
    error_count: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)
    column_map: Mapped[dict | None] = mapped_column(
        db.JSON,
        nullable=True,
        comment="Field to column mapping used by the latest dry run.",
    )
    error_report_path: Mapped[str | None] = mapped_column(
        db.String(500),
        nullable=True,
        comment="Artifact-relative path of the generated error CSV.",
    )
    processed_at: Mapped[datetime | None] = mapped_column(db.DateTime(timezone=True), nullable=True)

    team = relationship("Team", back_populates="import_jobs")
    user = relationship("User", back_populates="import_jobs")
    rows = relationship(
        "ImportRow",
        back_populates="import_job",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ImportRow.row_number",
    )

    __table_args__ = (
        UniqueConstraint("team_id", "file_hash", name="uq_import_jobs_team_file_hash"),
        Index("idx_import_jobs_team_status", "team_id", "status"),
    )

    def __repr__(self):
        return f"<ImportJob {self.id} {self.status.value if self.status else None}>"

    @property
    def counts(self) -> dict[str, int]:
        return {
            "total": self.total_rows or 0,
            "created": self.created_count or 0,
            "updated": self.updated_count or 0,
            "errors": self.error_count or 0,
        }


class ImportRow(BaseModel):
    """
    Computed outcome for a single spreadsheet data row.

    ``row_number`` is the 1-based line in the original file (the first data
    row is row 2). ``player_id`` holds the matched player for ``update`` rows
    and is linked for ``create`` rows once the job is applied.
    """

    __tablename__ = "import_rows"

    id: Mapped[int] = mapped_column(db.Integer, primary_key=True, autoincrement=True)
    job_id: Mapped[int] = mapped_column(
        ForeignKey("import_jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    player_id: Mapped[int | None] = mapped_column(
        ForeignKey("players.id", ondelete="SET NULL"),
        nullable=True,
    )
    row_number: Mapped[int] = mapped_column(db.Integer, nullable=False)
    payload: Mapped[dict | None] = mapped_column(db.JSON, nullable=True)
    action: Mapped[ImportRowAction] = mapped_column(
        Enum(ImportRowAction, name="import_row_action_enum"),
        nullable=False,
        default=ImportRowAction.CREATE,
        index=True,
    )
    errors: Mapped[dict | None] = mapped_column(db.JSON, nullable=True)

    import_job = relationship("ImportJob", back_populates="rows")
    player = relationship("Player")

    __table_args__ = (UniqueConstraint("job_id", "row_number", name="uq_import_rows_job_row_number"),)

    def __repr__(self):
        return f"<ImportRow job={self.job_id} row={self.row_number} {self.action.value if self.action else None}>"
