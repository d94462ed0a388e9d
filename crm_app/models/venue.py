# crm_app/models/venue.py

from sqlalchemy import CheckConstraint, Enum, Index

from .base import BaseModel, db
from .enums import VenueStage, VenueStatus, VenueType


class Venue(BaseModel):
    """Venue tracked through the sales pipeline."""

    __tablename__ = "venues"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    address = db.Column(db.String(500), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    state = db.Column(db.String(50), nullable=False)
    venue_type = db.Column(
        Enum(VenueType, name="venue_type_enum"),
        nullable=False,
        default=VenueType.OTHER,
    )
    capacity = db.Column(db.Integer, nullable=True)
    stage = db.Column(
        Enum(VenueStage, name="venue_stage_enum"),
        nullable=False,
        default=VenueStage.LEAD,
        index=True,
    )
    status = db.Column(
        Enum(VenueStatus, name="venue_status_enum"),
        nullable=False,
        default=VenueStatus.PROSPECT,
        index=True,
    )
    deal_value = db.Column(db.Float, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    operator_id = db.Column(db.Integer, db.ForeignKey("operators.id"), nullable=True)

    operator = db.relationship("Operator", back_populates="venues")
    contact_links = db.relationship("ContactVenue", back_populates="venue", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("capacity IS NULL OR capacity > 0", name="ck_venue_capacity_positive"),
        CheckConstraint("deal_value IS NULL OR deal_value > 0", name="ck_venue_deal_value_positive"),
        Index("idx_venue_stage_status", "stage", "status"),
    )

    def __repr__(self):
        return f"<Venue {self.name} ({self.city}, {self.state})>"
