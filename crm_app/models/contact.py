# crm_app/models/contact.py
"""
Contact people and their links to venues.
"""

from sqlalchemy import UniqueConstraint

from .base import BaseModel, db


def compute_initials(name):
    """Return up to two upper-cased initials for display avatars."""
    words = [part for part in (name or "").split() if part]
    return "".join(word[0] for word in words[:2]).upper()


class Contact(BaseModel):
    """A person at an operator or venue."""

    __tablename__ = "contacts"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    phone = db.Column(db.String(50), nullable=True)
    role = db.Column(db.String(255), nullable=True)
    is_primary = db.Column(db.Boolean, nullable=False, default=False)
    linked_in = db.Column(db.String(500), nullable=True)
    avatar = db.Column(db.String(4), nullable=True)

    venue_links = db.relationship("ContactVenue", back_populates="contact", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Contact {self.name} <{self.email}>>"


class ContactVenue(BaseModel):
    """Association between a contact and a venue."""

    __tablename__ = "contact_venues"

    id = db.Column(db.Integer, primary_key=True)
    contact_id = db.Column(db.Integer, db.ForeignKey("contacts.id"), nullable=False, index=True)
    venue_id = db.Column(db.Integer, db.ForeignKey("venues.id"), nullable=False, index=True)

    contact = db.relationship("Contact", back_populates="venue_links")
    venue = db.relationship("Venue", back_populates="contact_links")

    __table_args__ = (UniqueConstraint("contact_id", "venue_id", name="uq_contact_venue"),)
