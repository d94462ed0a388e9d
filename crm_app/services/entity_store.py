# crm_app/services/entity_store.py
"""
Entity store interface used by the importer.

Lookups return ``(id, name)`` pairs ordered by id; create methods add and
flush without committing so the caller owns the transaction boundary.
"""

from typing import Any, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from crm_app.models import Contact, ContactVenue, Operator, Venue, compute_initials, db
from crm_app.models.enums import VenueStage, VenueStatus, VenueType


class SQLAlchemyEntityStore:
    """Operators, venues and contacts backed by the application database."""

    def __init__(self, session: Optional[Session] = None):
        self.session: Session = session or db.session

    def list_operators_by_name(self) -> List[Tuple[int, str]]:
        rows = self.session.query(Operator.id, Operator.name).order_by(Operator.id.asc()).all()
        return [(row.id, row.name) for row in rows]

    def list_venues_by_name(self) -> List[Tuple[int, str]]:
        rows = self.session.query(Venue.id, Venue.name).order_by(Venue.id.asc()).all()
        return [(row.id, row.name) for row in rows]

    def create_venue(self, fields: Mapping[str, Any]) -> Venue:
        venue = Venue(
            name=fields["name"],
            address=fields["address"],
            city=fields["city"],
            state=fields["state"],
            venue_type=VenueType(fields.get("venue_type") or VenueType.OTHER.value),
            capacity=fields.get("capacity"),
            stage=VenueStage(fields.get("stage") or VenueStage.LEAD.value),
            status=VenueStatus(fields.get("status") or VenueStatus.PROSPECT.value),
            deal_value=fields.get("deal_value"),
            operator_id=fields.get("operator_id"),
            notes=fields.get("notes"),
        )
        self.session.add(venue)
        self.session.flush()
        return venue

    def create_contact(self, fields: Mapping[str, Any]) -> Contact:
        contact = Contact(
            name=fields["name"],
            email=fields["email"],
            phone=fields.get("phone"),
            role=fields.get("role"),
            is_primary=bool(fields.get("is_primary", False)),
            linked_in=fields.get("linked_in"),
            avatar=fields.get("avatar") or compute_initials(fields["name"]),
        )
        self.session.add(contact)
        self.session.flush()
        return contact

    def link_contact_to_venue(self, contact_id: int, venue_id: int) -> ContactVenue:
        link = ContactVenue(contact_id=contact_id, venue_id=venue_id)
        self.session.add(link)
        self.session.flush()
        return link

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
