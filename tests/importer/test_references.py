from types import MappingProxyType

import pytest

from crm_app.importer.pipeline.references import ReferenceResolver, ReferenceTable
from crm_app.models.importer.schema import ImportKind


def test_reference_table_is_case_insensitive_and_trims():
    table = ReferenceTable.from_pairs("Operator", "operatorName", [(1, "Live Nation"), (2, "AEG Presents")])

    assert table.resolve("  live nation ") == 1
    assert table.resolve("AEG PRESENTS") == 2
    assert table.resolve("Unknown") is None
    assert table.resolve("") is None
    assert "aeg presents" in table
    assert len(table) == 2


def test_reference_table_last_duplicate_wins():
    table = ReferenceTable.from_pairs("Venue", "venueName", [(3, "Arena"), (7, "ARENA")])

    assert table.resolve("arena") == 7
    assert len(table) == 1


def test_reference_table_is_read_only():
    table = ReferenceTable.from_pairs("Venue", "venueName", [(1, "Arena")])

    assert isinstance(table.ids_by_name, MappingProxyType)
    with pytest.raises(TypeError):
        table.ids_by_name["other"] = 2  # type: ignore[index]


def test_resolver_builds_operator_table_for_venue_imports(operator_factory):
    live_nation = operator_factory("Live Nation")
    aeg = operator_factory("AEG Presents")

    table = ReferenceResolver().build(ImportKind.VENUES)

    assert table.entity_label == "Operator"
    assert table.column == "operatorName"
    assert table.resolve("live nation") == live_nation.id
    assert table.resolve("aeg presents") == aeg.id


def test_resolver_builds_venue_table_for_contact_imports(venue_factory):
    garden = venue_factory("Madison Square Garden")

    table = ReferenceResolver().build("contacts")

    assert table.entity_label == "Venue"
    assert table.column == "venueName"
    assert table.resolve("MADISON SQUARE GARDEN") == garden.id


def test_resolver_returns_empty_table_when_nothing_exists(importer_app):
    table = ReferenceResolver().build(ImportKind.VENUES)

    assert len(table) == 0
    assert table.resolve("Anything") is None
