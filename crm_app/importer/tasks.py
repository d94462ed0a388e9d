"""
Importer Celery tasks.

``process_import_job`` runs a pending job from a persisted upload; the
heartbeat task backs ``flask importer worker ping`` and the worker health
endpoint.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from celery import shared_task
from flask import current_app

from crm_app.importer.adapters.csv_rows import CSVParseError
from crm_app.importer.pipeline.job_controller import run_import_job
from crm_app.importer.pipeline.job_service import ImportJobService
from crm_app.importer.utils import cleanup_upload
from crm_app.utils.importer import get_checkpoint_interval

PROCESS_IMPORT_JOB_TASK = "importer.pipeline.process_import_job"


@shared_task(name="importer.healthcheck", bind=True)
def importer_healthcheck(self) -> dict[str, Any]:
    """
    Simple heartbeat task used by worker health checks.
    """
    now = datetime.now(timezone.utc)
    return {
        "status": "ok",
        "timestamp": now.isoformat(),
        "worker_hostname": self.request.hostname,
    }


@shared_task(name=PROCESS_IMPORT_JOB_TASK, bind=True)
def process_import_job(self, *, job_id: int, file_path: str, keep_file: bool = False) -> dict[str, Any]:
    """
    Run an import job from the CSV stored at ``file_path``.
    """

    service = ImportJobService()
    path = Path(file_path)
    if not path.exists():
        message = f"CSV file not found: {file_path}"
        service.fail_job(job_id, message, origin="parse")
        current_app.logger.error(
            "Import job upload missing",
            extra={"importer_job_id": job_id, "importer_task_id": self.request.id, "importer_file_path": file_path},
        )
        raise FileNotFoundError(message)

    try:
        outcome = run_import_job(
            job_id,
            path.read_bytes(),
            checkpoint_interval=get_checkpoint_interval(current_app),
            job_service=service,
        )
    except CSVParseError:
        current_app.logger.warning(
            "Import job failed: CSV could not be parsed",
            extra={"importer_job_id": job_id, "importer_task_id": self.request.id},
        )
        raise
    except Exception:
        current_app.logger.exception(
            "Import job task failed",
            extra={"importer_job_id": job_id, "importer_task_id": self.request.id},
        )
        raise
    finally:
        if not keep_file:
            cleanup_upload(path)

    current_app.logger.info(
        "Import job task completed",
        extra={
            "importer_job_id": job_id,
            "importer_task_id": self.request.id,
            "importer_status": outcome.status.value,
        },
    )
    return outcome.as_dict()
