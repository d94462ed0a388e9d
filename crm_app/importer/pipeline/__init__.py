"""Import job pipeline: validation, writing, orchestration and job persistence."""

from .errors import GENERAL_FIELD, EntityWriteError, ErrorOrigin, RowError
from .job_controller import (
    CHECKPOINT_INTERVAL,
    ImportJobController,
    ImportOutcome,
    decide_terminal_status,
    job_payload,
    run_import_job,
)
from .job_service import ImportJobService, JobFilters, JobListResult, JobStats, JobSummary
from .references import ReferenceResolver, ReferenceTable
from .validation import (
    ContactRecord,
    RowValidator,
    VenueRecord,
    build_contact_validator,
    build_venue_validator,
    get_row_validator,
    validate_row,
)
from .writer import EntityWriter

__all__ = [
    "CHECKPOINT_INTERVAL",
    "GENERAL_FIELD",
    "ContactRecord",
    "EntityWriteError",
    "EntityWriter",
    "ErrorOrigin",
    "ImportJobController",
    "ImportJobService",
    "ImportOutcome",
    "JobFilters",
    "JobListResult",
    "JobStats",
    "JobSummary",
    "ReferenceResolver",
    "ReferenceTable",
    "RowError",
    "RowValidator",
    "VenueRecord",
    "build_contact_validator",
    "build_venue_validator",
    "decide_terminal_status",
    "get_row_validator",
    "job_payload",
    "run_import_job",
    "validate_row",
]
