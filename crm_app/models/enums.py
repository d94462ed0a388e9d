# crm_app/models/enums.py
"""
Enums for venue models.
"""

from enum import Enum as PyEnum


class VenueType(PyEnum):
    """Physical venue classification"""

    STADIUM = "stadium"
    ARENA = "arena"
    AMPHITHEATER = "amphitheater"
    THEATER = "theater"
    CONVENTION_CENTER = "convention_center"
    OTHER = "other"


class VenueStage(PyEnum):
    """Sales pipeline stage"""

    LEAD = "lead"
    QUALIFIED = "qualified"
    DEMO = "demo"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"


class VenueStatus(PyEnum):
    """Account relationship status"""

    CLIENT = "client"
    PROSPECT = "prospect"
    CHURNED = "churned"
    NEGOTIATING = "negotiating"
