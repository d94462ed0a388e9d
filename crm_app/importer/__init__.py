"""
CSV importer feature package.

Mounts the importer blueprint and CLI when ``IMPORTER_ENABLED`` is set,
validates the configured import kinds and prepares the Celery app used for
queued jobs.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from flask import Flask

from crm_app.utils.importer import get_importer_kinds, is_importer_enabled

from .celery_app import ensure_celery_app, get_celery_app
from .cli import get_disabled_importer_group, importer_cli
from .pipeline.job_controller import ImportJobController, run_import_job
from .pipeline.job_service import ImportJobService, JobFilters
from .registry import ImportKindDescriptor, get_import_kind_registry, resolve_import_kinds
from .views import importer_blueprint

IMPORTER_EXTENSION_KEY = "importer"

__all__ = [
    "init_importer",
    "IMPORTER_EXTENSION_KEY",
    "get_celery_app",
    "ImportJobController",
    "ImportJobService",
    "JobFilters",
    "run_import_job",
]


def _ensure_extension_state(app: Flask) -> dict:
    return app.extensions.setdefault(
        IMPORTER_EXTENSION_KEY,
        {
            "enabled": False,
            "configured_kinds": (),
            "active_kinds": (),
            "worker_enabled": False,
            "celery_app": None,
        },
    )


def _set_cli(app: Flask, enabled: bool) -> None:
    """Register the appropriate CLI group based on flag state."""
    # Tests build many apps; drop any earlier registration first.
    command_name = importer_cli.name
    if command_name in app.cli.commands:
        app.cli.commands.pop(command_name)

    if enabled:
        app.cli.add_command(importer_cli)
    else:
        app.cli.add_command(get_disabled_importer_group())


def init_importer(app: Flask) -> None:
    """
    Conditionally mount importer blueprint and CLI based on configuration.

    Records importer state inside ``app.extensions['importer']`` for the
    health endpoints, CLI and Celery helpers.
    """
    enabled = is_importer_enabled(app)
    configured_kinds: Tuple[str, ...] = get_importer_kinds(app)

    state = _ensure_extension_state(app)
    state.update(
        {
            "enabled": enabled,
            "configured_kinds": configured_kinds,
            "worker_enabled": bool(app.config.get("IMPORTER_WORKER_ENABLED", False)),
        }
    )

    if not enabled:
        state["active_kinds"] = ()
        _set_cli(app, enabled=False)
        app.logger.info("Importer disabled via IMPORTER_ENABLED flag; skipping registration.")
        return

    active_kinds: Iterable[ImportKindDescriptor] = resolve_import_kinds(configured_kinds, get_import_kind_registry())
    state["active_kinds"] = tuple(active_kinds)
    ensure_celery_app(app, state)

    if importer_blueprint.name not in app.blueprints:
        app.register_blueprint(importer_blueprint)
    _set_cli(app, enabled=True)

    kind_names = ", ".join(descriptor.name for descriptor in state["active_kinds"]) or "none"
    app.logger.info("Importer enabled with kinds: %s", kind_names)
