"""
SQLAlchemy models for CSV import jobs.

One row per submitted file. The job controller is the only writer once a job
leaves ``pending``; clients poll the record for progress.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Enum, Index
from sqlalchemy.orm import Mapped, mapped_column

from ..base import BaseModel, db


class ImportKind(str, enum.Enum):
    """Entity kind a job imports."""

    VENUES = "venues"
    CONTACTS = "contacts"


class ImportJobStatus(str, enum.Enum):
    """Lifecycle states for an import job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ImportJobStatus.COMPLETED, ImportJobStatus.FAILED)


ALLOWED_TRANSITIONS: dict[ImportJobStatus, frozenset[ImportJobStatus]] = {
    ImportJobStatus.PENDING: frozenset({ImportJobStatus.PROCESSING}),
    ImportJobStatus.PROCESSING: frozenset({ImportJobStatus.COMPLETED, ImportJobStatus.FAILED}),
    ImportJobStatus.COMPLETED: frozenset(),
    ImportJobStatus.FAILED: frozenset(),
}


class InvalidJobTransition(Exception):
    """Raised when a job is moved to a status its lifecycle does not allow."""

    def __init__(self, job_id: int | None, current: ImportJobStatus, requested: ImportJobStatus) -> None:
        super().__init__(
            f"Import job {job_id} cannot move from '{current.value}' to '{requested.value}'."
        )
        self.job_id = job_id
        self.current = current
        self.requested = requested


class ImportJob(BaseModel):
    """Progress and outcome of one bulk CSV import."""

    __tablename__ = "import_jobs"

    id: Mapped[int] = mapped_column(primary_key=True)
    import_kind: Mapped[ImportKind] = mapped_column(
        Enum(ImportKind, name="import_kind_enum"),
        nullable=False,
        index=True,
    )
    status: Mapped[ImportJobStatus] = mapped_column(
        Enum(ImportJobStatus, name="import_job_status_enum"),
        nullable=False,
        default=ImportJobStatus.PENDING,
        index=True,
    )
    source_file_name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    submitted_by: Mapped[str | None] = mapped_column(db.String(255), nullable=True)
    total_rows: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)
    processed_rows: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)
    success_rows: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)
    error_rows: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)
    errors_json: Mapped[list | None] = mapped_column(
        db.JSON,
        nullable=True,
        comment="Ordered row errors: row_number, field, message, origin.",
    )
    started_at: Mapped[datetime | None] = mapped_column(db.DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(db.DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint(
            "total_rows >= 0 AND processed_rows >= 0 AND success_rows >= 0 AND error_rows >= 0",
            name="ck_import_jobs_counts_non_negative",
        ),
        CheckConstraint("processed_rows <= total_rows", name="ck_import_jobs_processed_le_total"),
        CheckConstraint(
            "success_rows + error_rows <= processed_rows",
            name="ck_import_jobs_outcomes_le_processed",
        ),
        Index("idx_import_jobs_kind_status", "import_kind", "status"),
    )

    def __repr__(self) -> str:
        status = self.status.value if self.status else None
        return f"<ImportJob {self.id} {self.import_kind} {status}>"

    @property
    def errors(self) -> list[dict]:
        return list(self.errors_json or [])

    def public_errors(self) -> list[dict]:
        """Error entries without the internal origin tag."""
        return [
            {
                "row_number": entry.get("row_number"),
                "field": entry.get("field"),
                "message": entry.get("message"),
            }
            for entry in self.errors
        ]

    def transition_to(self, new_status: ImportJobStatus) -> None:
        """Move the job along its lifecycle, stamping start and completion times."""
        current = self.status or ImportJobStatus.PENDING
        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidJobTransition(self.id, current, new_status)
        now = datetime.now(timezone.utc)
        if new_status is ImportJobStatus.PROCESSING:
            self.started_at = now
        if new_status.is_terminal:
            self.completed_at = now
        self.status = new_status
