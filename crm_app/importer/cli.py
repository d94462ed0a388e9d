"""
Flask CLI commands for the CSV importer.

``flask importer run`` submits a file as an import job, either inline in the
CLI process or queued for the Celery worker. ``status`` and ``template`` read
job progress and blank CSV templates back out.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import click
from celery import Celery
from celery.exceptions import TimeoutError as CeleryTimeoutError
from flask.cli import ScriptInfo
from sqlalchemy.exc import NoResultFound

from crm_app.importer.celery_app import DEFAULT_QUEUE_NAME, get_celery_app
from crm_app.importer.contracts import get_contract
from crm_app.importer.metrics import record_job_submitted
from crm_app.importer.pipeline.job_controller import ImportOutcome, job_payload, run_import_job
from crm_app.importer.pipeline.job_service import ImportJobService
from crm_app.importer.tasks import PROCESS_IMPORT_JOB_TASK
from crm_app.importer.utils import cleanup_upload, count_data_rows, persist_upload_bytes, resolve_upload_directory
from crm_app.models.importer.schema import ImportKind
from crm_app.utils.importer import get_checkpoint_interval, get_importer_kinds, is_importer_enabled

KIND_CHOICES = click.Choice([kind.value for kind in ImportKind], case_sensitive=False)


@click.group(name="importer", invoke_without_command=True)
@click.pass_context
def importer_cli(ctx):
    """
    CSV importer commands.

    Lists the enabled import kinds when invoked without a subcommand.
    """
    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()
    if not is_importer_enabled(app):
        raise click.ClickException(
            "Importer is disabled via IMPORTER_ENABLED=false. Enable it to run importer CLI commands."
        )
    if ctx.invoked_subcommand is None:
        kinds = get_importer_kinds(app)
        if not kinds:
            click.echo("No import kinds configured.")
        else:
            click.echo("Enabled import kinds:")
            for kind in kinds:
                click.echo(f"  - {kind}")


def get_disabled_importer_group() -> click.Group:
    """
    Return a minimal command group that informs the operator the importer is disabled.
    """

    @click.group(name="importer", invoke_without_command=True)
    def disabled_group():
        raise click.ClickException("Importer commands are unavailable because IMPORTER_ENABLED=false.")

    return disabled_group


def _resolve_celery(app) -> Celery:
    celery_app = get_celery_app(app)
    if celery_app is None:
        raise click.ClickException(
            "Importer Celery app is unavailable. Ensure IMPORTER_ENABLED=true and the "
            "importer package initialises before running worker commands."
        )
    return celery_app


def _ensure_kind_enabled(app, kind: str) -> ImportKind:
    normalized = kind.lower()
    if normalized not in get_importer_kinds(app):
        raise click.ClickException(f"Import kind '{normalized}' is not enabled. Check IMPORTER_KINDS.")
    return ImportKind(normalized)


def _format_summary(outcome: ImportOutcome, source_name: str) -> str:
    lines = [
        f"Job {outcome.job_id} finished with status {outcome.status.value} ({source_name}).",
        f"  total_rows    : {outcome.total_rows}",
        f"  processed_rows: {outcome.processed_rows}",
        f"  success_rows  : {outcome.success_rows}",
        f"  error_rows    : {outcome.error_rows}",
        f"  duration      : {outcome.duration_seconds:.2f}s",
    ]
    for error in outcome.errors[:10]:
        row_label = error.row_number if error.row_number is not None else "-"
        lines.append(f"    row {row_label} [{error.field}] {error.message}")
    if outcome.error_rows > 10:
        lines.append(f"    ... {outcome.error_rows - 10} more error(s)")
    return "\n".join(lines)


@importer_cli.command("run")
@click.option("--kind", required=True, type=KIND_CHOICES, help="Entity kind the CSV contains.")
@click.option(
    "--file",
    "file_path",
    required=True,
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    help="Path to the CSV file to import.",
)
@click.option(
    "--inline/--no-inline",
    default=False,
    help="Run inline within the CLI process instead of queueing via Celery.",
)
@click.option(
    "--summary-json",
    is_flag=True,
    help="Emit a machine-readable summary payload after completion (inline runs only).",
)
@click.pass_context
def importer_run(ctx, kind: str, file_path: Path, inline: bool, summary_json: bool):
    """Submit a CSV file as an import job."""
    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()
    import_kind = _ensure_kind_enabled(app, kind)

    if summary_json and not inline:
        raise click.ClickException("--summary-json is only available for --inline runs.")

    csv_path = file_path.resolve()
    content = csv_path.read_bytes()
    service = ImportJobService()
    job = service.create_job(import_kind, csv_path.name, count_data_rows(content), submitted_by="cli")
    job_id = job.id

    if not inline:
        celery_app = _resolve_celery(app)
        stored_path = persist_upload_bytes(content, app)
        try:
            async_result = celery_app.tasks[PROCESS_IMPORT_JOB_TASK].apply_async(
                kwargs={"job_id": job_id, "file_path": str(stored_path), "keep_file": False},
            )
        except Exception as exc:
            cleanup_upload(stored_path)
            service.fail_job(job_id, f"Failed to enqueue import job: {exc}")
            raise click.ClickException(f"Failed to enqueue import job {job_id}: {exc}") from exc

        record_job_submitted(import_kind.value, "queued")
        app.logger.info(
            "Import job queued via CLI",
            extra={
                "importer_job_id": job_id,
                "importer_task_id": async_result.id,
                "importer_kind": import_kind.value,
            },
        )
        click.echo(json.dumps({"job_id": job_id, "task_id": async_result.id, "status": "queued"}))
        return

    record_job_submitted(import_kind.value, "inline")
    try:
        outcome = run_import_job(
            job_id,
            content,
            checkpoint_interval=get_checkpoint_interval(app),
            job_service=service,
        )
    except Exception as exc:
        raise click.ClickException(f"Import job {job_id} failed: {exc}") from exc

    click.echo(_format_summary(outcome, csv_path.name))
    if summary_json:
        click.echo(json.dumps(outcome.as_dict(), indent=2, sort_keys=True))


@importer_cli.command("status")
@click.option("--job-id", required=True, type=int, help="ID of the import job.")
@click.pass_context
def importer_status(ctx, job_id: int):
    """Print the current state of an import job as JSON."""
    ctx.ensure_object(ScriptInfo).load_app()
    try:
        job = ImportJobService().get_job(job_id)
    except NoResultFound as exc:
        raise click.ClickException(f"Import job {job_id} not found.") from exc
    click.echo(json.dumps(job_payload(job), indent=2))


@importer_cli.command("template")
@click.option("--kind", required=True, type=KIND_CHOICES, help="Entity kind to render a template for.")
@click.option(
    "--output",
    type=click.Path(path_type=Path, dir_okay=False, writable=True),
    help="Write the template to this path instead of stdout.",
)
@click.pass_context
def importer_template(ctx, kind: str, output: Optional[Path]):
    """Render the CSV template (header plus an example row) for an import kind."""
    ctx.ensure_object(ScriptInfo).load_app()
    template = get_contract(kind.lower()).render_template()
    if output is None:
        click.echo(template, nl=False)
        return
    output.write_text(template, encoding="utf-8")
    click.echo(f"Wrote {kind.lower()} template to {output}")


@importer_cli.command("cleanup-uploads")
@click.option(
    "--max-age-hours",
    default=72,
    show_default=True,
    type=int,
    help="Remove importer uploads older than the specified number of hours.",
)
@click.pass_context
def importer_cleanup_uploads(ctx, max_age_hours: int):
    """
    Delete stale importer upload files from the configured storage directory.
    """

    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()

    uploads_dir = resolve_upload_directory(app)
    cutoff = datetime.now(timezone.utc) - timedelta(hours=max_age_hours)
    removed = 0
    for path in uploads_dir.iterdir():
        if not path.is_file():
            continue
        try:
            modified = datetime.fromtimestamp(path.stat().st_mtime, timezone.utc)
        except FileNotFoundError:
            continue
        if modified < cutoff:
            cleanup_upload(path)
            removed += 1

    click.echo(f"Removed {removed} upload file(s) older than {max_age_hours} hours from {uploads_dir}.")


@importer_cli.group(name="worker")
@click.pass_context
def worker_group(ctx):
    """Manage the importer background worker."""
    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()
    if not app.config.get("IMPORTER_WORKER_ENABLED"):
        click.echo(
            "Warning: IMPORTER_WORKER_ENABLED is false. Uploads run inline until the flag is enabled.",
            err=True,
        )


@worker_group.command("run")
@click.option("--loglevel", default="info", show_default=True)
@click.option("--concurrency", type=int, help="Number of worker processes/threads.")
@click.option("--pool", type=str, help="Celery pool implementation (e.g., 'prefork', 'solo', 'threads').")
@click.option(
    "--queues",
    default=DEFAULT_QUEUE_NAME,
    show_default=True,
    help="Comma-separated queue list to consume.",
)
@click.pass_context
def worker_run(ctx, loglevel: str, concurrency: Optional[int], pool: Optional[str], queues: str):
    """
    Start the Celery worker in the current process.
    """
    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()
    celery_app = _resolve_celery(app)

    argv = ["worker", "--loglevel", loglevel, "-Q", queues]
    if concurrency:
        argv.extend(["--concurrency", str(concurrency)])
    if pool:
        argv.extend(["--pool", pool])

    pool_msg = f", pool: {pool}" if pool else ""
    click.echo(f"Starting importer worker (queues: {queues}, loglevel: {loglevel}{pool_msg})")
    try:
        celery_app.worker_main(argv=argv)
    except KeyboardInterrupt:
        click.echo("Worker shutdown requested. Exiting...")


@worker_group.command("ping")
@click.option("--timeout", default=10.0, show_default=True, help="Seconds to wait for a response.")
@click.pass_context
def worker_ping(ctx, timeout: float):
    """
    Validate worker connectivity by executing the heartbeat task.
    """
    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()
    celery_app = _resolve_celery(app)
    task = celery_app.tasks.get("importer.healthcheck")
    if task is None:
        raise click.ClickException("Heartbeat task 'importer.healthcheck' is not registered.")

    result = task.apply_async()
    try:
        payload = result.get(timeout=timeout)
    except CeleryTimeoutError as exc:
        raise click.ClickException(f"Worker did not respond within {timeout}s") from exc
    except Exception as exc:  # pragma: no cover - surfacing unexpected errors
        raise click.ClickException(f"Worker ping failed: {exc}") from exc

    click.echo(json.dumps(payload, indent=2))
