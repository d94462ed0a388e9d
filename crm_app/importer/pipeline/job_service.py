"""
Service helpers for import job persistence, querying and serialization.

The job controller writes progress through :meth:`ImportJobService.update_job`;
the API and CLI read jobs back through the listing, detail and statistics
helpers so SQLAlchemy logic stays in one place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from sqlalchemy import and_, func
from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm import Session

from crm_app.models import db
from crm_app.models.importer.schema import ImportJob, ImportJobStatus, ImportKind

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100
DEFAULT_SORT = "-created_at"

VALID_SORT_FIELDS = {
    "id": ImportJob.id,
    "job_id": ImportJob.id,
    "kind": ImportJob.import_kind,
    "status": ImportJob.status,
    "created_at": ImportJob.created_at,
    "started_at": ImportJob.started_at,
    "completed_at": ImportJob.completed_at,
}

UPDATABLE_FIELDS = frozenset({"status", "total_rows", "processed_rows", "success_rows", "error_rows", "errors"})


@dataclass(frozen=True)
class JobFilters:
    """Canonical set of filter options applied to import job queries."""

    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    sort: str = DEFAULT_SORT
    statuses: tuple[ImportJobStatus, ...] = field(default_factory=tuple)
    kinds: tuple[ImportKind, ...] = field(default_factory=tuple)

    @classmethod
    def coerce(
        cls,
        *,
        page: int | str | None = None,
        page_size: int | str | None = None,
        sort: str | None = None,
        statuses: Iterable[str] | None = None,
        kinds: Iterable[str] | None = None,
    ) -> "JobFilters":
        """
        Coerce mixed user input into a validated ``JobFilters`` instance.
        """

        resolved_page = _coerce_positive_int(page, fallback=DEFAULT_PAGE)
        resolved_size = min(_coerce_positive_int(page_size, fallback=DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE)

        resolved_sort = sort or DEFAULT_SORT
        if resolved_sort.lstrip("-") not in VALID_SORT_FIELDS:
            raise ValueError(f"Unsupported sort field '{resolved_sort.lstrip('-')}'.")

        resolved_statuses = tuple(_coerce_status(value) for value in (statuses or ()) if value)
        resolved_kinds = tuple(_coerce_kind(value) for value in (kinds or ()) if value)

        return cls(
            page=resolved_page,
            page_size=resolved_size,
            sort=resolved_sort,
            statuses=resolved_statuses,
            kinds=resolved_kinds,
        )


@dataclass(slots=True)
class JobSummary:
    """Summarized representation of an import job."""

    id: int
    kind: str
    status: str
    source_file_name: str
    submitted_by: str | None
    total_rows: int
    processed_rows: int
    success_rows: int
    error_rows: int
    progress_percent: float
    created_at: datetime | None
    started_at: datetime | None
    completed_at: datetime | None
    duration_seconds: float | None


@dataclass(slots=True)
class JobListResult:
    """Paginated result set for import jobs."""

    items: list[JobSummary]
    total: int
    page: int
    page_size: int
    total_pages: int


@dataclass(slots=True)
class JobStats:
    """Aggregate statistics across import jobs."""

    total: int
    statuses: Mapping[str, int]
    kinds: Mapping[str, int]
    rows: Mapping[str, int]


class ImportJobService:
    """Facade for creating, updating and querying import jobs."""

    def __init__(self, session: Session | None = None) -> None:
        self.session: Session = session or db.session

    # ---------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------

    def create_job(
        self,
        import_kind: ImportKind | str,
        source_file_name: str,
        total_rows: int,
        *,
        submitted_by: str | None = None,
    ) -> ImportJob:
        if total_rows < 0:
            raise ValueError("total_rows must be non-negative.")
        job = ImportJob(
            import_kind=_coerce_kind(import_kind),
            status=ImportJobStatus.PENDING,
            source_file_name=source_file_name,
            submitted_by=submitted_by,
            total_rows=total_rows,
            processed_rows=0,
            success_rows=0,
            error_rows=0,
            errors_json=[],
        )
        self.session.add(job)
        self.session.commit()
        return job

    def get_job(self, job_id: int) -> ImportJob:
        job = self.session.get(ImportJob, job_id)
        if job is None:
            raise NoResultFound(f"Import job {job_id} not found.")
        return job

    def update_job(self, job_id: int, **fields: Any) -> ImportJob:
        """
        Apply a partial update and commit it.

        ``status`` goes through the job lifecycle check; ``errors`` replaces
        the stored error list.
        """

        unknown = sorted(set(fields) - UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported import job fields: {', '.join(unknown)}.")

        job = self.get_job(job_id)
        for name in ("total_rows", "processed_rows", "success_rows", "error_rows"):
            if name in fields:
                setattr(job, name, int(fields[name]))
        if "errors" in fields:
            job.errors_json = [dict(entry) for entry in fields["errors"]]
        if "status" in fields:
            job.transition_to(_coerce_status(fields["status"]))
        self.session.commit()
        return job

    def fail_job(self, job_id: int, message: str, *, origin: str = "write") -> ImportJob:
        """
        Mark a job failed with a single job-level error.

        Used when a job cannot run at all (enqueue failure, missing upload);
        a pending job passes through ``processing`` so its lifecycle stays valid.
        Terminal jobs are returned untouched.
        """

        job = self.get_job(job_id)
        if job.status.is_terminal:
            return job
        if job.status is ImportJobStatus.PENDING:
            job.transition_to(ImportJobStatus.PROCESSING)
        job.errors_json = [{"row_number": None, "field": "general", "message": message, "origin": origin}]
        job.transition_to(ImportJobStatus.FAILED)
        self.session.commit()
        return job

    # ---------------------------------------------------------------------
    # Queries
    # ---------------------------------------------------------------------

    def list_jobs(self, filters: JobFilters) -> JobListResult:
        query = self._apply_filters(self._base_query(), filters)

        total = query.count()
        if total == 0:
            return JobListResult(items=[], total=0, page=filters.page, page_size=filters.page_size, total_pages=0)

        paginated = (
            query.order_by(_resolve_sort_expression(filters.sort))
            .offset((filters.page - 1) * filters.page_size)
            .limit(filters.page_size)
            .all()
        )
        total_pages = (total + filters.page_size - 1) // filters.page_size
        return JobListResult(
            items=[self.summarize(job) for job in paginated],
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            total_pages=total_pages,
        )

    def get_stats(self, filters: JobFilters) -> JobStats:
        query = self._apply_filters(self._base_query(), filters)

        status_counts = {
            _enum_value(status): count
            for status, count in query.with_entities(ImportJob.status, func.count()).group_by(ImportJob.status).all()
        }
        kind_counts = {
            _enum_value(kind): count
            for kind, count in query.with_entities(ImportJob.import_kind, func.count())
            .group_by(ImportJob.import_kind)
            .all()
        }
        processed, succeeded, failed = query.with_entities(
            func.coalesce(func.sum(ImportJob.processed_rows), 0),
            func.coalesce(func.sum(ImportJob.success_rows), 0),
            func.coalesce(func.sum(ImportJob.error_rows), 0),
        ).one()
        return JobStats(
            total=sum(status_counts.values()),
            statuses=status_counts,
            kinds=kind_counts,
            rows={"processed": int(processed), "success": int(succeeded), "error": int(failed)},
        )

    def summarize(self, job: ImportJob) -> JobSummary:
        duration_seconds: float | None = None
        if job.started_at:
            finished = job.completed_at or datetime.now(timezone.utc)
            duration_seconds = (_as_aware(finished) - _as_aware(job.started_at)).total_seconds()

        progress = 0.0
        if job.total_rows:
            progress = round(100.0 * job.processed_rows / job.total_rows, 1)
        elif job.status is ImportJobStatus.COMPLETED:
            progress = 100.0

        return JobSummary(
            id=job.id,
            kind=_enum_value(job.import_kind),
            status=_enum_value(job.status),
            source_file_name=job.source_file_name,
            submitted_by=job.submitted_by,
            total_rows=job.total_rows,
            processed_rows=job.processed_rows,
            success_rows=job.success_rows,
            error_rows=job.error_rows,
            progress_percent=progress,
            created_at=job.created_at,
            started_at=job.started_at,
            completed_at=job.completed_at,
            duration_seconds=duration_seconds,
        )

    # ---------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------

    def _base_query(self):
        return self.session.query(ImportJob)

    def _apply_filters(self, query, filters: JobFilters):
        predicates = []
        if filters.statuses:
            predicates.append(ImportJob.status.in_(filters.statuses))
        if filters.kinds:
            predicates.append(ImportJob.import_kind.in_(filters.kinds))
        if predicates:
            query = query.filter(and_(*predicates))
        return query


# -------------------------------------------------------------------------
# Helper functions
# -------------------------------------------------------------------------


def _coerce_positive_int(candidate: int | str | None, *, fallback: int) -> int:
    if candidate in (None, ""):
        return fallback
    if isinstance(candidate, int):
        return max(1, candidate)
    if isinstance(candidate, str) and candidate.isdigit():
        return max(1, int(candidate))
    raise ValueError(f"Expected positive integer for pagination, received '{candidate}'.")


def _coerce_status(value: str | ImportJobStatus) -> ImportJobStatus:
    if isinstance(value, ImportJobStatus):
        return value
    try:
        return ImportJobStatus(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Unsupported status filter '{value}'.") from None


def _coerce_kind(value: str | ImportKind) -> ImportKind:
    if isinstance(value, ImportKind):
        return value
    try:
        return ImportKind(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Unsupported import kind '{value}'.") from None


def _enum_value(value: Any) -> str:
    return value.value if hasattr(value, "value") else str(value)


def _as_aware(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def _resolve_sort_expression(sort: str):
    descending = sort.startswith("-")
    expression = VALID_SORT_FIELDS.get(sort.lstrip("-"))
    if expression is None:
        raise ValueError(f"Unsupported sort field '{sort}'.")
    return expression.desc() if descending else expression.asc()
