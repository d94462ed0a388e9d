"""Column contracts for the CSV import kinds."""

from __future__ import annotations

from .base import FieldSpec, ImportContract, normalize_header
from .contact import CONTACT_CONTRACT, CONTACT_FIELDS
from .venue import VENUE_CONTRACT, VENUE_FIELDS

_CONTRACTS = {
    VENUE_CONTRACT.kind: VENUE_CONTRACT,
    CONTACT_CONTRACT.kind: CONTACT_CONTRACT,
}


def get_contract(kind) -> ImportContract:
    """Return the contract for an import kind (``ImportKind`` or its string value)."""

    key = getattr(kind, "value", kind)
    try:
        return _CONTRACTS[str(key).strip().lower()]
    except KeyError:
        raise ValueError(f"Unsupported import kind '{kind}'.") from None


__all__ = [
    "FieldSpec",
    "ImportContract",
    "normalize_header",
    "VENUE_CONTRACT",
    "VENUE_FIELDS",
    "CONTACT_CONTRACT",
    "CONTACT_FIELDS",
    "get_contract",
]
