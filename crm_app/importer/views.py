"""
Importer blueprint endpoints: health, CSV templates, job submission and job polling APIs.
"""

from __future__ import annotations

import time
from http import HTTPStatus

from celery.exceptions import TimeoutError as CeleryTimeoutError
from flask import Blueprint, current_app, jsonify, make_response, request
from sqlalchemy.exc import NoResultFound

from config.monitoring import ImporterMonitoring
from crm_app.importer.contracts import get_contract
from crm_app.importer.metrics import record_job_submitted
from crm_app.importer.pipeline.job_controller import job_payload, run_import_job
from crm_app.importer.pipeline.job_service import ImportJobService, JobFilters
from crm_app.importer.tasks import PROCESS_IMPORT_JOB_TASK
from crm_app.importer.utils import (
    allowed_file,
    cleanup_upload,
    count_data_rows,
    display_file_name,
    max_upload_bytes,
    persist_upload_bytes,
    read_upload_bytes,
)
from crm_app.models.importer.schema import ImportJobStatus
from crm_app.utils.importer import get_checkpoint_interval, get_importer_kinds, is_importer_enabled

from .celery_app import DEFAULT_QUEUE_NAME, get_celery_app
from .registry import ImportKindDescriptor

importer_blueprint = Blueprint("importer", __name__, url_prefix="/importer")


class UploadRejected(ValueError):
    """Submitted content cannot become an import job."""

    def __init__(self, message: str, status: HTTPStatus = HTTPStatus.BAD_REQUEST) -> None:
        super().__init__(message)
        self.status = status


def _serialize_kind(descriptor: ImportKindDescriptor) -> dict:
    return {
        "name": descriptor.name,
        "title": descriptor.title,
        "references": descriptor.references,
        "summary": descriptor.summary,
    }


@importer_blueprint.get("/health")
def importer_healthcheck():
    """
    Lightweight health endpoint proving the importer blueprint mounted correctly.
    """
    importer_state = current_app.extensions.get("importer", {})
    kinds = importer_state.get("active_kinds", ())
    return (
        jsonify(
            {
                "status": "ok",
                "enabled": importer_state.get("enabled", False),
                "worker_enabled": importer_state.get("worker_enabled", False),
                "kinds": [_serialize_kind(kind) for kind in kinds],
            }
        ),
        200,
    )


@importer_blueprint.get("/worker_health")
def importer_worker_health():
    """
    Validate importer worker availability via the heartbeat task.
    """
    importer_state = current_app.extensions.get("importer", {})
    enabled = importer_state.get("enabled", False)
    worker_enabled = importer_state.get("worker_enabled", False)
    timeout_seconds = float(request.args.get("timeout", 5))

    payload = {
        "importer_enabled": enabled,
        "worker_enabled": worker_enabled,
        "queue": DEFAULT_QUEUE_NAME,
        "timeout_seconds": timeout_seconds,
    }

    if not enabled:
        payload["status"] = "disabled"
        return jsonify(payload), 200

    if not worker_enabled:
        payload["status"] = "disabled"
        payload["message"] = "Worker flag disabled; uploads run inline. Set IMPORTER_WORKER_ENABLED=true."
        return jsonify(payload), 200

    celery_app = get_celery_app(current_app)
    if celery_app is None:
        payload["status"] = "error"
        payload["error"] = "celery_app_unavailable"
        return jsonify(payload), 500

    task = celery_app.tasks.get("importer.healthcheck")
    if task is None:
        payload["status"] = "error"
        payload["error"] = "heartbeat_task_missing"
        return jsonify(payload), 500

    result = task.apply_async()
    try:
        payload["status"] = "ok"
        payload["heartbeat"] = result.get(timeout=timeout_seconds)
        return jsonify(payload), 200
    except CeleryTimeoutError:
        payload["status"] = "timeout"
        return jsonify(payload), 504
    except Exception as exc:  # pragma: no cover - defensive logging
        current_app.logger.exception("Importer worker health check failed.", exc_info=exc)
        payload["status"] = "error"
        payload["error"] = str(exc)
        return jsonify(payload), 500


_job_service = ImportJobService()


def _json_error(message: str, status: HTTPStatus):
    return jsonify({"error": message}), status


def _ensure_importer_enabled_api():
    if not is_importer_enabled(current_app):
        return _json_error("Importer is disabled.", HTTPStatus.NOT_FOUND)
    return None


def _ensure_kind_enabled(kind: str):
    if kind not in get_importer_kinds(current_app):
        return _json_error(f"Unknown import kind '{kind}'.", HTTPStatus.BAD_REQUEST)
    return None


def _split_csv(value: str | None):
    if value in (None, ""):
        return ()
    return tuple(token.strip() for token in value.split(",") if token.strip())


def _parse_filters() -> JobFilters:
    raw = request.args
    default_page_size = current_app.config.get("IMPORTER_JOBS_PAGE_SIZE_DEFAULT")
    return JobFilters.coerce(
        page=raw.get("page"),
        page_size=raw.get("per_page") or raw.get("page_size") or default_page_size,
        sort=raw.get("sort"),
        statuses=_split_csv(raw.get("status")),
        kinds=_split_csv(raw.get("kind")),
    )


def _serialize_summary(summary):
    return {
        "id": summary.id,
        "job_id": summary.id,
        "kind": summary.kind,
        "status": summary.status,
        "source_file_name": summary.source_file_name,
        "submitted_by": summary.submitted_by,
        "total_rows": summary.total_rows,
        "processed_rows": summary.processed_rows,
        "success_rows": summary.success_rows,
        "error_rows": summary.error_rows,
        "progress_percent": summary.progress_percent,
        "created_at": summary.created_at.isoformat() if summary.created_at else None,
        "started_at": summary.started_at.isoformat() if summary.started_at else None,
        "completed_at": summary.completed_at.isoformat() if summary.completed_at else None,
        "duration_seconds": summary.duration_seconds,
    }


# ---------------------------------------------------------------------------
# Templates and submission
# ---------------------------------------------------------------------------


@importer_blueprint.get("/templates/<kind>")
def importer_template(kind: str):
    enabled_response = _ensure_importer_enabled_api()
    if enabled_response:
        return enabled_response
    kind_response = _ensure_kind_enabled(kind)
    if kind_response:
        return kind_response

    response = make_response(get_contract(kind).render_template())
    response.headers["Content-Type"] = "text/csv; charset=utf-8"
    response.headers["Content-Disposition"] = f"attachment; filename={kind}_template.csv"
    return response


def _read_submission() -> tuple[bytes, str]:
    """Return ``(content, file_name)`` from a multipart upload or a JSON body."""

    max_bytes = max_upload_bytes(current_app)
    file_storage = request.files.get("file")
    if file_storage is not None:
        if not file_storage.filename:
            raise UploadRejected("No file uploaded.")
        if not allowed_file(file_storage.filename):
            raise UploadRejected("Unsupported file type; only CSV is allowed.")
        content = read_upload_bytes(file_storage)
        file_name = display_file_name(file_storage.filename)
    else:
        body = request.get_json(silent=True) or {}
        csv_content = body.get("csv_content")
        if not isinstance(csv_content, str) or not csv_content.strip():
            raise UploadRejected("Provide a CSV file upload or a non-empty 'csv_content' field.")
        file_name = display_file_name(body.get("file_name"))
        if not allowed_file(file_name):
            raise UploadRejected("Unsupported file type; only CSV is allowed.")
        content = csv_content.encode("utf-8")

    if len(content) > max_bytes:
        raise UploadRejected("Upload exceeds maximum size limit.", HTTPStatus.REQUEST_ENTITY_TOO_LARGE)
    if count_data_rows(content) == 0:
        raise UploadRejected("CSV file must have a header row and at least one data row.")
    return content, file_name


def _submission_message(job) -> str:
    if job.status is ImportJobStatus.PENDING:
        return "Import queued; poll the job for progress."
    if job.status is ImportJobStatus.FAILED:
        return "Import failed; see the job errors for details."
    if job.error_rows:
        return f"Import completed: {job.success_rows} row(s) imported, {job.error_rows} row(s) with errors."
    return f"Import completed: {job.success_rows} row(s) imported."


def _enqueue_job(job_id: int, content: bytes) -> str:
    celery_app = get_celery_app(current_app)
    if celery_app is None:
        raise RuntimeError("Importer worker is not configured.")
    stored_path = persist_upload_bytes(content, current_app)
    try:
        async_result = celery_app.tasks[PROCESS_IMPORT_JOB_TASK].apply_async(
            kwargs={"job_id": job_id, "file_path": str(stored_path), "keep_file": False},
        )
    except Exception:
        cleanup_upload(stored_path)
        raise
    return async_result.id


@importer_blueprint.post("/jobs/<kind>")
def importer_submit_job(kind: str):
    enabled_response = _ensure_importer_enabled_api()
    if enabled_response:
        return enabled_response
    kind_response = _ensure_kind_enabled(kind)
    if kind_response:
        ImporterMonitoring.record_job_submit(status="invalid_request")
        return kind_response

    try:
        content, file_name = _read_submission()
    except UploadRejected as exc:
        ImporterMonitoring.record_job_submit(status="invalid_request")
        return _json_error(str(exc), exc.status)

    job = _job_service.create_job(kind, file_name, count_data_rows(content), submitted_by=request.remote_addr)
    job_id = job.id
    worker_enabled = bool(current_app.config.get("IMPORTER_WORKER_ENABLED", False))
    mode = "queued" if worker_enabled else "inline"

    if worker_enabled:
        try:
            task_id = _enqueue_job(job_id, content)
        except Exception as exc:
            current_app.logger.exception("Failed to enqueue import job.", extra={"importer_job_id": job_id})
            _job_service.fail_job(job_id, f"Failed to enqueue import job: {exc}")
            ImporterMonitoring.record_job_submit(status="error")
            return _json_error("Failed to enqueue import job.", HTTPStatus.INTERNAL_SERVER_ERROR)
        current_app.logger.info(
            "Import job enqueued",
            extra={"importer_job_id": job_id, "importer_task_id": task_id, "importer_kind": kind},
        )
    else:
        try:
            run_import_job(
                job_id,
                content,
                checkpoint_interval=get_checkpoint_interval(current_app),
                job_service=_job_service,
            )
        except Exception as exc:
            # The controller has already marked the job failed.
            current_app.logger.warning(
                "Inline import job failed",
                extra={"importer_job_id": job_id, "importer_kind": kind, "importer_error": str(exc)},
            )

    record_job_submitted(kind, mode)
    ImporterMonitoring.record_job_submit(status="success")

    job = _job_service.get_job(job_id)
    payload = job_payload(job)
    payload["mode"] = mode
    payload["message"] = _submission_message(job)
    return jsonify(payload), HTTPStatus.ACCEPTED


# ---------------------------------------------------------------------------
# Job polling APIs
# ---------------------------------------------------------------------------


@importer_blueprint.get("/jobs")
def importer_jobs_list():
    enabled_response = _ensure_importer_enabled_api()
    if enabled_response:
        return enabled_response

    try:
        filters = _parse_filters()
    except ValueError as exc:
        ImporterMonitoring.record_jobs_list(duration_seconds=0.0, status="invalid_request", result_count=0)
        return _json_error(str(exc), HTTPStatus.BAD_REQUEST)

    start_time = time.perf_counter()
    try:
        result = _job_service.list_jobs(filters)
    except Exception as exc:  # pragma: no cover - defensive logging
        current_app.logger.exception("Import jobs list failed.", exc_info=exc)
        ImporterMonitoring.record_jobs_list(
            duration_seconds=time.perf_counter() - start_time, status="error", result_count=0
        )
        return _json_error("Failed to load import jobs.", HTTPStatus.INTERNAL_SERVER_ERROR)

    duration = time.perf_counter() - start_time
    ImporterMonitoring.record_jobs_list(duration_seconds=duration, status="success", result_count=len(result.items))

    response_payload = {
        "jobs": [_serialize_summary(item) for item in result.items],
        "total": result.total,
        "page": result.page,
        "page_size": result.page_size,
        "total_pages": result.total_pages,
        "filters": {
            "page": filters.page,
            "page_size": filters.page_size,
            "sort": filters.sort,
            "statuses": [status.value for status in filters.statuses],
            "kinds": [kind.value for kind in filters.kinds],
        },
    }
    current_app.logger.info(
        "Import jobs list retrieved",
        extra={
            "importer_job_count": len(result.items),
            "importer_total_jobs": result.total,
            "importer_response_time_ms": round(duration * 1000, 2),
        },
    )
    return jsonify(response_payload), HTTPStatus.OK


@importer_blueprint.get("/jobs/stats")
def importer_jobs_stats():
    enabled_response = _ensure_importer_enabled_api()
    if enabled_response:
        return enabled_response

    try:
        filters = _parse_filters()
    except ValueError as exc:
        ImporterMonitoring.record_jobs_stats(duration_seconds=0.0, status="invalid_request")
        return _json_error(str(exc), HTTPStatus.BAD_REQUEST)

    start_time = time.perf_counter()
    try:
        stats = _job_service.get_stats(filters)
    except Exception as exc:  # pragma: no cover - defensive logging
        current_app.logger.exception("Import jobs stats failed.", exc_info=exc)
        ImporterMonitoring.record_jobs_stats(duration_seconds=time.perf_counter() - start_time, status="error")
        return _json_error("Failed to load import job statistics.", HTTPStatus.INTERNAL_SERVER_ERROR)

    ImporterMonitoring.record_jobs_stats(duration_seconds=time.perf_counter() - start_time, status="success")
    return (
        jsonify(
            {
                "total": stats.total,
                "by_status": dict(stats.statuses),
                "by_kind": dict(stats.kinds),
                "rows": dict(stats.rows),
            }
        ),
        HTTPStatus.OK,
    )


@importer_blueprint.get("/jobs/<int:job_id>")
def importer_job_detail(job_id: int):
    enabled_response = _ensure_importer_enabled_api()
    if enabled_response:
        return enabled_response

    start_time = time.perf_counter()
    try:
        job = _job_service.get_job(job_id)
        summary = _job_service.summarize(job)
    except NoResultFound:
        ImporterMonitoring.record_job_detail(duration_seconds=time.perf_counter() - start_time, status="not_found")
        return _json_error(f"Import job {job_id} not found.", HTTPStatus.NOT_FOUND)

    ImporterMonitoring.record_job_detail(duration_seconds=time.perf_counter() - start_time, status="success")
    payload = job_payload(job)
    payload["progress_percent"] = summary.progress_percent
    payload["duration_seconds"] = summary.duration_seconds
    return jsonify(payload), HTTPStatus.OK


@importer_blueprint.get("/jobs/<int:job_id>/errors")
def importer_job_errors(job_id: int):
    enabled_response = _ensure_importer_enabled_api()
    if enabled_response:
        return enabled_response

    try:
        job = _job_service.get_job(job_id)
    except NoResultFound:
        return _json_error(f"Import job {job_id} not found.", HTTPStatus.NOT_FOUND)

    errors = job.public_errors()
    return jsonify({"job_id": job.id, "errors": errors, "error_count": len(errors)}), HTTPStatus.OK
