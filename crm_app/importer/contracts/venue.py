"""Venue import column contract."""

from __future__ import annotations

from typing import Tuple

from .base import FieldSpec, ImportContract

VENUE_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec(
        name="name",
        label="Name",
        description="Venue display name.",
        required=True,
        aliases=("venue_name",),
        example="Example Stadium",
    ),
    FieldSpec(
        name="address",
        label="Address",
        description="Street address.",
        required=True,
        aliases=("street", "street_address"),
        example="123 Main St",
    ),
    FieldSpec(name="city", label="City", description="City.", required=True, example="New York"),
    FieldSpec(
        name="state",
        label="State",
        description="State or region code.",
        required=True,
        aliases=("region",),
        example="NY",
    ),
    FieldSpec(
        name="type",
        label="Venue type",
        description="stadium, arena, amphitheater, theater, convention_center or other (default other).",
        aliases=("venue_type",),
        example="stadium",
    ),
    FieldSpec(
        name="capacity",
        label="Capacity",
        description="Seating capacity, positive integer.",
        example="50000",
    ),
    FieldSpec(
        name="stage",
        label="Stage",
        description="Pipeline stage (default lead).",
        aliases=("pipeline_stage",),
        example="lead",
    ),
    FieldSpec(
        name="status",
        label="Status",
        description="Account status (default prospect).",
        example="prospect",
    ),
    FieldSpec(
        name="dealValue",
        label="Deal value",
        description="Expected deal value, positive decimal.",
        aliases=("deal",),
        example="100000",
    ),
    FieldSpec(
        name="operatorName",
        label="Operator",
        description="Name of an existing operator; leave empty for none.",
        aliases=("operator",),
        example="Operator Name",
    ),
    FieldSpec(name="notes", label="Notes", description="Free-form notes.", example="Notes here"),
)

VENUE_CONTRACT = ImportContract(kind="venues", fields=VENUE_FIELDS)
