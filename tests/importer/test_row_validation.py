import pytest

from crm_app.importer.adapters.csv_rows import CSVRow
from crm_app.importer.pipeline.errors import ErrorOrigin, RowError
from crm_app.importer.pipeline.references import ReferenceTable
from crm_app.importer.pipeline.validation import ContactRecord, VenueRecord, normalize_choice, validate_row
from crm_app.models.enums import VenueStage, VenueStatus, VenueType

OPERATORS = ReferenceTable.from_pairs("Operator", "operatorName", [(11, "Live Nation")])
VENUES = ReferenceTable.from_pairs("Venue", "venueName", [(21, "Madison Square Garden")])


def _venue_row(row_number: int = 2, **overrides) -> CSVRow:
    values = {
        "name": "Arena One",
        "address": "1 Main St",
        "city": "Austin",
        "state": "TX",
    }
    values.update(overrides)
    return CSVRow(row_number=row_number, values=values)


def _contact_row(row_number: int = 2, **overrides) -> CSVRow:
    values = {"name": "Jane Doe", "email": "jane@example.com"}
    values.update(overrides)
    return CSVRow(row_number=row_number, values=values)


def test_minimal_venue_row_takes_defaults():
    record = validate_row(_venue_row(), OPERATORS, kind="venues")

    assert isinstance(record, VenueRecord)
    assert record.venue_type is VenueType.OTHER
    assert record.stage is VenueStage.LEAD
    assert record.status is VenueStatus.PROSPECT
    assert record.capacity is None
    assert record.deal_value is None
    assert record.operator_id is None
    assert record.notes is None


def test_full_venue_row_is_normalized():
    row = _venue_row(
        type="Convention-Center",
        capacity="20,000",
        stage="Closed Won",
        status="CLIENT",
        dealValue="1,250,000.50",
        operatorName="live nation",
        notes="Renewal due",
    )

    record = validate_row(row, OPERATORS, kind="venues")

    assert record.venue_type is VenueType.CONVENTION_CENTER
    assert record.stage is VenueStage.CLOSED_WON
    assert record.status is VenueStatus.CLIENT
    assert record.capacity == 20000
    assert record.deal_value == pytest.approx(1250000.5)
    assert record.operator_id == 11
    assert record.as_store_fields()["venue_type"] == "convention_center"


@pytest.mark.parametrize(
    "missing, message",
    [
        ("name", "Name is required"),
        ("address", "Address is required"),
        ("city", "City is required"),
        ("state", "State is required"),
    ],
)
def test_venue_required_fields(missing, message):
    error = validate_row(_venue_row(row_number=3, **{missing: ""}), OPERATORS, kind="venues")

    assert error == RowError(row_number=3, field=missing, message=message, origin=ErrorOrigin.VALIDATION)


def test_first_failing_rule_wins():
    row = _venue_row(city="", type="castle", capacity="lots")

    error = validate_row(row, OPERATORS, kind="venues")

    assert error.field == "city"


@pytest.mark.parametrize(
    "column, raw, message",
    [
        ("type", "castle", "Invalid venue type: castle"),
        ("stage", "won", "Invalid stage: won"),
        ("status", "archived", "Invalid status: archived"),
        ("capacity", "abc", "Invalid capacity: abc"),
        ("capacity", "0", "Invalid capacity: 0"),
        ("capacity", "-5", "Invalid capacity: -5"),
        ("capacity", "12.5", "Invalid capacity: 12.5"),
        ("dealValue", "cheap", "Invalid deal value: cheap"),
        ("dealValue", "-100", "Invalid deal value: -100"),
        ("dealValue", "inf", "Invalid deal value: inf"),
        ("dealValue", "nan", "Invalid deal value: nan"),
        ("capacity", "1_000", "Invalid capacity: 1_000"),
        ("capacity", "\u0661\u0662", "Invalid capacity: \u0661\u0662"),
        ("dealValue", "1e3", "Invalid deal value: 1e3"),
        ("dealValue", "5_000.50", "Invalid deal value: 5_000.50"),
    ],
)
def test_venue_value_errors_echo_raw_input(column, raw, message):
    error = validate_row(_venue_row(**{column: raw}), OPERATORS, kind="venues")

    assert isinstance(error, RowError)
    assert error.field == column
    assert error.message == message


def test_unknown_operator_is_a_row_error():
    error = validate_row(_venue_row(operatorName="Nobody Inc"), OPERATORS, kind="venues")

    assert error.field == "operatorName"
    assert error.message == "Operator not found: Nobody Inc"


def test_venue_length_limits():
    error = validate_row(_venue_row(state="T" * 51), OPERATORS, kind="venues")

    assert error.field == "state"
    assert error.message == "State must be at most 50 characters"


def test_normalize_choice():
    assert normalize_choice("  Closed-Won ") == "closed_won"
    assert normalize_choice("convention center") == "convention_center"


def test_contact_row_with_venue_link():
    row = _contact_row(
        phone="+1 555 0100",
        role="Booker",
        isPrimary="Yes",
        venueName="madison square garden",
        linkedIn="https://linkedin.com/in/jane",
    )

    record = validate_row(row, VENUES, kind="contacts")

    assert isinstance(record, ContactRecord)
    assert record.is_primary is True
    assert record.venue_id == 21
    assert record.as_store_fields() == {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "+1 555 0100",
        "role": "Booker",
        "is_primary": True,
        "linked_in": "https://linkedin.com/in/jane",
    }


@pytest.mark.parametrize("flag, expected", [("true", True), ("1", True), ("no", False), ("", False), ("maybe", False)])
def test_contact_primary_flag_is_lenient(flag, expected):
    record = validate_row(_contact_row(isPrimary=flag), VENUES, kind="contacts")

    assert record.is_primary is expected


@pytest.mark.parametrize("email", ["not-an-email", "jane@", "jane@example", "jane doe@example.com"])
def test_contact_invalid_email(email):
    error = validate_row(_contact_row(email=email), VENUES, kind="contacts")

    assert error.field == "email"
    assert error.message == "Invalid email format"


def test_contact_missing_email_is_required_error():
    error = validate_row(_contact_row(email=""), VENUES, kind="contacts")

    assert error.message == "Email is required"


def test_contact_unknown_venue():
    error = validate_row(_contact_row(venueName="The Nowhere Club"), VENUES, kind="contacts")

    assert error.field == "venueName"
    assert error.message == "Venue not found: The Nowhere Club"


def test_contact_phone_length_limit():
    error = validate_row(_contact_row(phone="5" * 51), VENUES, kind="contacts")

    assert error.field == "phone"
    assert error.message == "Phone must be at most 50 characters"
