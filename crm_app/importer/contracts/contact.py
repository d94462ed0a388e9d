"""Contact import column contract."""

from __future__ import annotations

from typing import Tuple

from .base import FieldSpec, ImportContract

CONTACT_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec(
        name="name",
        label="Name",
        description="Full name; the first two words seed the avatar initials.",
        required=True,
        aliases=("full_name", "contact_name"),
        example="John Doe",
    ),
    FieldSpec(
        name="email",
        label="Email",
        description="Email address (local@domain.tld).",
        required=True,
        aliases=("email_address",),
        example="john@example.com",
    ),
    FieldSpec(
        name="phone",
        label="Phone",
        description="Phone number.",
        aliases=("phone_number",),
        example="+1234567890",
    ),
    FieldSpec(
        name="role",
        label="Role",
        description="Job title.",
        aliases=("title",),
        example="VP of Operations",
    ),
    FieldSpec(
        name="isPrimary",
        label="Primary contact",
        description="true/false; marks the primary contact.",
        aliases=("primary",),
        example="true",
    ),
    FieldSpec(
        name="venueName",
        label="Venue",
        description="Name of an existing venue to link; leave empty for none.",
        aliases=("venue",),
        example="Example Stadium",
    ),
    FieldSpec(
        name="linkedIn",
        label="LinkedIn",
        description="LinkedIn profile URL.",
        aliases=("linkedin_url",),
        example="https://linkedin.com/in/johndoe",
    ),
)

CONTACT_CONTRACT = ImportContract(kind="contacts", fields=CONTACT_FIELDS)
