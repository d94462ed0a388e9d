"""Prometheus metrics helpers for the importer pipeline."""

from __future__ import annotations

from typing import Literal

from prometheus_client import Counter, Histogram

_jobs_submitted_counter = Counter(
    "importer_jobs_submitted_total",
    "Import jobs submitted, by kind and execution mode.",
    ["kind", "mode"],
)
_jobs_finished_counter = Counter(
    "importer_jobs_finished_total",
    "Import jobs that reached a terminal status, by kind and status.",
    ["kind", "status"],
)
_job_duration = Histogram(
    "importer_job_duration_seconds",
    "Wall-clock duration of an import job pass in seconds.",
    ["kind"],
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60, 120, 300, 900),
)
_rows_counter = Counter(
    "importer_rows_processed_total",
    "Import rows processed, by kind and outcome.",
    ["kind", "outcome"],
)


def record_job_submitted(kind: str, mode: Literal["inline", "queued"]) -> None:
    """Increment the submission counter."""

    _jobs_submitted_counter.labels(kind=kind, mode=mode).inc()


def record_job_finished(kind: str, status: str, duration_seconds: float) -> None:
    """Capture the terminal status and duration of a job."""

    _jobs_finished_counter.labels(kind=kind, status=status).inc()
    _job_duration.labels(kind=kind).observe(max(duration_seconds, 0.0))


def record_row_outcome(kind: str, outcome: Literal["success", "validation_error", "write_error"]) -> None:
    _rows_counter.labels(kind=kind, outcome=outcome).inc()
