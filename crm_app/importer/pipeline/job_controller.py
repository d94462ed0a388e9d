"""
Import job controller.

Drives one job through ``pending -> processing -> completed | failed``:
parse the CSV, load the reference table once, then validate and write each
row in order. A failing row is recorded and skipped; it never stops the
pass. Progress counters are checkpointed after every ``checkpoint_interval``
rows (at 0-based indices 0, K, 2K, ...) and the final update always writes
the authoritative counts and the full error list.

Only failures outside the per-row boundary (unparseable CSV, reference
lookup failure, a checkpoint that cannot be persisted) fail the job early.
Those are recorded as one job-level error entry (no row number) after any
row errors already collected, the counters are written from the in-memory
tallies, and the exception is re-raised to the caller. A job-level entry is
not a row, so ``error_rows`` counts only the entries that carry a row number.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from crm_app.importer.adapters.csv_rows import CSVParseError, ParsedCSV, parse_csv_rows
from crm_app.importer.contracts import get_contract
from crm_app.importer.metrics import record_job_finished, record_row_outcome
from crm_app.models.importer.schema import ImportJob, ImportJobStatus
from crm_app.services.entity_store import SQLAlchemyEntityStore

from .errors import GENERAL_FIELD, EntityWriteError, ErrorOrigin, RowError
from .job_service import ImportJobService
from .references import ReferenceResolver, ReferenceTable
from .validation import RowValidator, get_row_validator
from .writer import EntityWriter

logger = logging.getLogger(__name__)

CHECKPOINT_INTERVAL = 10


def decide_terminal_status(success_rows: int, error_rows: int) -> ImportJobStatus:
    """A job fails only when nothing was written and something went wrong."""
    if success_rows == 0 and error_rows > 0:
        return ImportJobStatus.FAILED
    return ImportJobStatus.COMPLETED


def should_checkpoint(index: int, interval: int) -> bool:
    return index % interval == 0


@dataclass
class ImportOutcome:
    """Final tallies of a controller pass."""

    job_id: int
    status: ImportJobStatus
    total_rows: int = 0
    processed_rows: int = 0
    success_rows: int = 0
    errors: list[RowError] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def error_rows(self) -> int:
        return len(self.errors)

    def as_dict(self) -> dict:
        return {
            "job_id": self.job_id,
            "status": self.status.value,
            "total_rows": self.total_rows,
            "processed_rows": self.processed_rows,
            "success_rows": self.success_rows,
            "error_rows": self.error_rows,
            "errors": [error.as_public_dict() for error in self.errors],
            "duration_seconds": round(self.duration_seconds, 3),
        }


class ImportJobController:
    """Run a pending import job to completion."""

    def __init__(
        self,
        job_service: ImportJobService | None = None,
        store: SQLAlchemyEntityStore | None = None,
        *,
        checkpoint_interval: int = CHECKPOINT_INTERVAL,
    ) -> None:
        if checkpoint_interval < 1:
            raise ValueError("checkpoint_interval must be at least 1.")
        self.job_service = job_service or ImportJobService()
        self.store = store or SQLAlchemyEntityStore(self.job_service.session)
        self.checkpoint_interval = checkpoint_interval
        self.resolver = ReferenceResolver(self.store)
        self.writer = EntityWriter(self.store)

    def run(self, job_id: int, csv_content: str | bytes) -> ImportOutcome:
        job = self.job_service.get_job(job_id)
        kind = job.import_kind
        started = time.perf_counter()

        self.job_service.update_job(job_id, status=ImportJobStatus.PROCESSING)
        logger.info(
            "Import job processing started",
            extra={"importer_job_id": job_id, "importer_kind": kind.value},
        )

        outcome = ImportOutcome(job_id=job_id, status=ImportJobStatus.PROCESSING, total_rows=job.total_rows)
        try:
            parsed = parse_csv_rows(csv_content, contract=get_contract(kind))
            references = self.resolver.build(kind)
            self._reconcile_total(job_id, job.total_rows, len(parsed))
            outcome.total_rows = len(parsed)
            self._process_rows(outcome, kind.value, parsed, references, get_row_validator(kind))
        except Exception as exc:
            self._abort(outcome, kind.value, exc, started)
            raise

        outcome.status = decide_terminal_status(outcome.success_rows, outcome.error_rows)
        outcome.duration_seconds = time.perf_counter() - started

        self.job_service.update_job(
            job_id,
            status=outcome.status,
            processed_rows=outcome.processed_rows,
            success_rows=outcome.success_rows,
            error_rows=outcome.error_rows,
            errors=[error.as_record() for error in outcome.errors],
        )
        record_job_finished(kind.value, outcome.status.value, outcome.duration_seconds)
        logger.info(
            "Import job finished",
            extra={
                "importer_job_id": job_id,
                "importer_kind": kind.value,
                "importer_status": outcome.status.value,
                "importer_success_rows": outcome.success_rows,
                "importer_error_rows": outcome.error_rows,
                "importer_duration_seconds": round(outcome.duration_seconds, 3),
            },
        )
        return outcome

    def _process_rows(
        self,
        outcome: ImportOutcome,
        kind: str,
        parsed: ParsedCSV,
        references: ReferenceTable,
        validator: RowValidator,
    ) -> ImportOutcome:
        job_id = outcome.job_id

        for index, row in enumerate(parsed.rows):
            stage = ErrorOrigin.VALIDATION
            try:
                result = validator.validate(row, references)
                if isinstance(result, RowError):
                    outcome.errors.append(result)
                    record_row_outcome(kind, "validation_error")
                else:
                    stage = ErrorOrigin.WRITE
                    self.writer.write(result)
                    outcome.success_rows += 1
                    record_row_outcome(kind, "success")
            except EntityWriteError as exc:
                outcome.errors.append(exc.to_row_error())
                record_row_outcome(kind, "write_error")
            except Exception as exc:
                logger.warning(
                    "Import row failed unexpectedly",
                    exc_info=True,
                    extra={
                        "importer_job_id": job_id,
                        "importer_row_number": row.row_number,
                        "importer_stage": stage.value,
                    },
                )
                outcome.errors.append(
                    RowError(
                        row_number=row.row_number,
                        field=GENERAL_FIELD,
                        message=str(exc) or exc.__class__.__name__,
                        origin=stage,
                    )
                )
                record_row_outcome(kind, "write_error" if stage is ErrorOrigin.WRITE else "validation_error")

            outcome.processed_rows = index + 1
            if should_checkpoint(index, self.checkpoint_interval):
                self.job_service.update_job(
                    job_id,
                    processed_rows=outcome.processed_rows,
                    success_rows=outcome.success_rows,
                    error_rows=outcome.error_rows,
                )

        return outcome

    def _reconcile_total(self, job_id: int, submitted_rows: int, parsed_rows: int) -> None:
        if submitted_rows == parsed_rows:
            return
        logger.info(
            "Import job row count reconciled",
            extra={
                "importer_job_id": job_id,
                "importer_submitted_rows": submitted_rows,
                "importer_parsed_rows": parsed_rows,
            },
        )
        self.job_service.update_job(job_id, total_rows=parsed_rows)

    def _abort(self, outcome: ImportOutcome, kind: str, exc: Exception, started: float) -> None:
        """Fail the job with the tallies so far plus one job-level error entry."""
        origin = ErrorOrigin.PARSE if isinstance(exc, CSVParseError) else ErrorOrigin.WRITE
        synthetic = RowError(row_number=None, field=GENERAL_FIELD, message=str(exc), origin=origin)
        self.job_service.session.rollback()
        self.job_service.update_job(
            outcome.job_id,
            status=ImportJobStatus.FAILED,
            processed_rows=outcome.processed_rows,
            success_rows=outcome.success_rows,
            error_rows=outcome.error_rows,
            errors=[error.as_record() for error in outcome.errors] + [synthetic.as_record()],
        )
        record_job_finished(kind, ImportJobStatus.FAILED.value, time.perf_counter() - started)
        logger.error(
            "Import job aborted",
            exc_info=exc,
            extra={"importer_job_id": outcome.job_id, "importer_kind": kind, "importer_error": str(exc)},
        )


def run_import_job(
    job_id: int,
    csv_content: str | bytes,
    *,
    checkpoint_interval: int = CHECKPOINT_INTERVAL,
    job_service: ImportJobService | None = None,
) -> ImportOutcome:
    """Convenience wrapper used by the CLI, views and worker task."""
    controller = ImportJobController(job_service=job_service, checkpoint_interval=checkpoint_interval)
    return controller.run(job_id, csv_content)


def job_payload(job: ImportJob) -> dict:
    """Public shape of a job record for API and CLI output."""
    return {
        "job_id": job.id,
        "kind": job.import_kind.value,
        "status": job.status.value,
        "source_file_name": job.source_file_name,
        "total_rows": job.total_rows,
        "processed_rows": job.processed_rows,
        "success_rows": job.success_rows,
        "error_rows": job.error_rows,
        "errors": job.public_errors(),
        "created_at": job.created_at.isoformat() if job.created_at else None,
        "started_at": job.started_at.isoformat() if job.started_at else None,
        "completed_at": job.completed_at.isoformat() if job.completed_at else None,
    }
