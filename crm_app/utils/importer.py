"""
Utility helpers for importer feature flag checks.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from flask import current_app


def _get_config(app=None):
    if app is not None:
        return app.config
    return current_app.config


def is_importer_enabled(app=None) -> bool:
    """Return True when the importer feature flag is enabled."""
    config = _get_config(app)
    return bool(config.get("IMPORTER_ENABLED", False))


def get_importer_kinds(app=None) -> Tuple[str, ...]:
    """Return the configured import kinds (``venues``, ``contacts``)."""
    config = _get_config(app)
    kinds: Iterable[str] = config.get("IMPORTER_KINDS", ())
    return tuple(kinds)


def get_checkpoint_interval(app=None) -> int:
    """Rows between progress checkpoints; never below one."""
    config = _get_config(app)
    try:
        interval = int(config.get("IMPORTER_CHECKPOINT_INTERVAL", 10))
    except (TypeError, ValueError):
        return 10
    return max(1, interval)
