import pytest
from sqlalchemy.exc import IntegrityError

from crm_app.models import Contact, ContactVenue, Venue, VenueStage, VenueStatus, VenueType, compute_initials, db


@pytest.mark.parametrize(
    "name, expected",
    [
        ("John Smith", "JS"),
        ("mary ann smith", "MA"),
        ("Cher", "C"),
        ("  ", ""),
        (None, ""),
    ],
)
def test_compute_initials(name, expected):
    assert compute_initials(name) == expected


def test_venue_defaults(app):
    venue = Venue(name="The Fillmore", address="1805 Geary Blvd", city="San Francisco", state="CA")
    db.session.add(venue)
    db.session.commit()

    assert venue.venue_type is VenueType.OTHER
    assert venue.stage is VenueStage.LEAD
    assert venue.status is VenueStatus.PROSPECT
    assert venue.created_at is not None


@pytest.mark.parametrize("fields", [{"capacity": 0}, {"deal_value": -10.0}])
def test_venue_rejects_non_positive_numbers(app, fields):
    venue = Venue(name="Arena", address="1 Main St", city="Austin", state="TX", **fields)
    db.session.add(venue)

    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_venue_operator_relationship(test_venue, test_operator):
    assert test_venue.operator is test_operator
    assert test_operator.venues == [test_venue]


def test_contact_venue_link_is_unique(test_contact, test_venue):
    assert [link.venue_id for link in test_contact.venue_links] == [test_venue.id]

    db.session.add(ContactVenue(contact_id=test_contact.id, venue_id=test_venue.id))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_deleting_contact_removes_links(test_contact):
    db.session.delete(test_contact)
    db.session.commit()

    assert Contact.query.count() == 0
    assert ContactVenue.query.count() == 0
