import csv
import io

import pytest

from crm_app.importer.contracts import CONTACT_CONTRACT, VENUE_CONTRACT, get_contract, normalize_header
from crm_app.models.importer.schema import ImportKind


def test_get_contract_accepts_enum_and_string():
    assert get_contract(ImportKind.VENUES) is VENUE_CONTRACT
    assert get_contract(" Contacts ") is CONTACT_CONTRACT

    with pytest.raises(ValueError, match="Unsupported import kind"):
        get_contract("operators")


def test_normalize_header_ignores_case_and_separators():
    assert normalize_header(" Deal_Value ") == normalize_header("deal-value") == "dealvalue"
    assert normalize_header("\ufeffName") == "name"


def test_required_headers():
    assert VENUE_CONTRACT.required_headers() == ("name", "address", "city", "state")
    assert CONTACT_CONTRACT.required_headers() == ("name", "email")


def test_resolve_headers_maps_aliases_and_keeps_unknown_columns():
    assert VENUE_CONTRACT.resolve_headers(["Venue Name", "Street", "City", "Region", "Website"]) == (
        "name",
        "address",
        "city",
        "state",
        "Website",
    )
    assert CONTACT_CONTRACT.resolve_headers(["full name", "email address"]) == ("name", "email")


def test_venue_template_has_header_and_example_row():
    rows = list(csv.reader(io.StringIO(get_contract("venues").render_template())))

    assert rows[0] == [
        "name",
        "address",
        "city",
        "state",
        "type",
        "capacity",
        "stage",
        "status",
        "dealValue",
        "operatorName",
        "notes",
    ]
    assert rows[1] == [
        "Example Stadium",
        "123 Main St",
        "New York",
        "NY",
        "stadium",
        "50000",
        "lead",
        "prospect",
        "100000",
        "Operator Name",
        "Notes here",
    ]
    assert len(rows) == 2


def test_contact_template_columns():
    header_line = get_contract("contacts").render_template().splitlines()[0]

    assert header_line == "name,email,phone,role,isPrimary,venueName,linkedIn"
