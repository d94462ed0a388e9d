"""
Importer-specific SQLAlchemy models.
"""

from .schema import ALLOWED_TRANSITIONS, ImportJob, ImportJobStatus, ImportKind, InvalidJobTransition

__all__ = [
    "ALLOWED_TRANSITIONS",
    "ImportJob",
    "ImportJobStatus",
    "ImportKind",
    "InvalidJobTransition",
]
