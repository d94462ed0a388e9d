# crm_app/models/operator.py

from .base import BaseModel, db


class Operator(BaseModel):
    """Company operating one or more venues."""

    __tablename__ = "operators"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    website = db.Column(db.String(500), nullable=True)

    venues = db.relationship("Venue", back_populates="operator")

    def __repr__(self):
        return f"<Operator {self.name}>"
