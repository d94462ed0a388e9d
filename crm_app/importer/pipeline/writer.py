"""
Entity writer: persists one validated row per transaction.

A venue row becomes one venue insert. A contact row becomes the contact
insert plus, when a venue was named, the contact-venue link; both share a
single commit so a failed link leaves no orphan contact. Store failures are
rolled back and surfaced as :class:`EntityWriteError`.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from crm_app.services.entity_store import SQLAlchemyEntityStore

from .errors import EntityWriteError
from .validation import ContactRecord, NormalizedRecord, VenueRecord

logger = logging.getLogger(__name__)


def _describe_store_error(exc: Exception) -> str:
    if isinstance(exc, SQLAlchemyError):
        original = getattr(exc, "orig", None)
        if original is not None:
            return str(original)
    return str(exc) or exc.__class__.__name__


class EntityWriter:
    """Write validated venue and contact records through the entity store."""

    def __init__(self, store: SQLAlchemyEntityStore | None = None) -> None:
        self.store = store or SQLAlchemyEntityStore()

    def write(self, record: NormalizedRecord) -> int:
        """Persist ``record`` and return the new entity id."""
        try:
            if isinstance(record, VenueRecord):
                entity_id = self._write_venue(record)
            elif isinstance(record, ContactRecord):
                entity_id = self._write_contact(record)
            else:
                raise TypeError(f"Unsupported record type {type(record).__name__}")
            self.store.commit()
        except Exception as exc:
            self.store.rollback()
            message = _describe_store_error(exc)
            logger.warning(
                "Importer row write failed",
                extra={"importer_row_number": record.row_number, "importer_write_error": message},
            )
            raise EntityWriteError(record.row_number, message) from exc
        return entity_id

    def _write_venue(self, record: VenueRecord) -> int:
        venue = self.store.create_venue(record.as_store_fields())
        return venue.id

    def _write_contact(self, record: ContactRecord) -> int:
        contact = self.store.create_contact(record.as_store_fields())
        if record.venue_id is not None:
            self.store.link_contact_to_venue(contact.id, record.venue_id)
        return contact.id
