# crm_app/models/__init__.py
"""
Database models package
"""

from .base import BaseModel, db
from .contact import Contact, ContactVenue, compute_initials
from .enums import VenueStage, VenueStatus, VenueType
from .importer import ImportJob, ImportJobStatus, ImportKind, InvalidJobTransition
from .operator import Operator
from .venue import Venue

__all__ = [
    "db",
    "BaseModel",
    "Operator",
    "Venue",
    "VenueType",
    "VenueStage",
    "VenueStatus",
    "Contact",
    "ContactVenue",
    "compute_initials",
    # Importer models
    "ImportJob",
    "ImportJobStatus",
    "ImportKind",
    "InvalidJobTransition",
]
