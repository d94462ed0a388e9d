from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from crm_app.importer.pipeline.job_service import ImportJobService
from crm_app.models import Operator, Venue, db
from crm_app.models.importer.schema import ImportJob, ImportJobStatus, ImportKind

VENUE_HEADER = "name,address,city,state,type,capacity,stage,status,dealValue,operatorName,notes"
CONTACT_HEADER = "name,email,phone,role,isPrimary,venueName,linkedIn"


@pytest.fixture
def importer_app(app):
    # The root fixture already builds the app with the importer mounted.
    assert "importer" in app.blueprints
    yield app


@pytest.fixture
def job_service(importer_app):
    return ImportJobService()


@pytest.fixture
def operator_factory(importer_app):
    def _factory(name: str = "Live Nation", **fields) -> Operator:
        operator = Operator(name=name, **fields)
        db.session.add(operator)
        db.session.commit()
        return operator

    return _factory


@pytest.fixture
def venue_factory(importer_app):
    counter = {"value": 0}

    def _factory(name: str | None = None, **fields) -> Venue:
        counter["value"] += 1
        venue = Venue(
            name=name or f"Venue {counter['value']}",
            address=fields.pop("address", f"{counter['value']} Main St"),
            city=fields.pop("city", "Austin"),
            state=fields.pop("state", "TX"),
            **fields,
        )
        db.session.add(venue)
        db.session.commit()
        return venue

    return _factory


@pytest.fixture
def job_factory(importer_app):
    """Create import jobs directly in a given state for listing and polling tests."""

    def _factory(
        *,
        kind: ImportKind = ImportKind.VENUES,
        status: ImportJobStatus = ImportJobStatus.COMPLETED,
        total_rows: int = 10,
        success_rows: int | None = None,
        error_rows: int = 0,
        errors: list[dict] | None = None,
        started_offset_minutes: int = 0,
        duration_seconds: int = 30,
        source_file_name: str = "upload.csv",
    ) -> ImportJob:
        now = datetime.now(timezone.utc).replace(microsecond=0)
        started_at = None
        completed_at = None
        processed_rows = 0
        if status is not ImportJobStatus.PENDING:
            started_at = now - timedelta(minutes=started_offset_minutes)
            processed_rows = total_rows
        if status.is_terminal:
            completed_at = started_at + timedelta(seconds=duration_seconds)
        if success_rows is None:
            success_rows = processed_rows - error_rows

        job = ImportJob(
            import_kind=kind,
            status=status,
            source_file_name=source_file_name,
            total_rows=total_rows,
            processed_rows=processed_rows,
            success_rows=success_rows,
            error_rows=error_rows,
            errors_json=errors or [],
            started_at=started_at,
            completed_at=completed_at,
        )
        db.session.add(job)
        db.session.commit()
        return job

    return _factory


def _build_csv(header: str, rows) -> str:
    return "\n".join((header, *rows)) + "\n"


@pytest.fixture
def venue_csv():
    """Build venue CSV text from data lines under the standard venue header."""

    def _build(*rows: str, header: str = VENUE_HEADER) -> str:
        return _build_csv(header, rows)

    return _build


@pytest.fixture
def contact_csv():
    def _build(*rows: str, header: str = CONTACT_HEADER) -> str:
        return _build_csv(header, rows)

    return _build
