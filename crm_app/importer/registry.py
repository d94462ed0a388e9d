"""
Registry of supported import kinds.

Configuration names kinds in ``IMPORTER_KINDS``; the registry validates
those names and carries the metadata the health endpoint and CLI display.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from crm_app.models.importer.schema import ImportKind


@dataclass(frozen=True)
class ImportKindDescriptor:
    """Metadata describing one importable entity kind."""

    name: str
    title: str
    references: str | None = None
    summary: str | None = None

    @property
    def kind(self) -> ImportKind:
        return ImportKind(self.name)


def get_import_kind_registry() -> Mapping[str, ImportKindDescriptor]:
    """Return the registry of supported import kinds."""
    return OrderedDict(
        (
            (
                ImportKind.VENUES.value,
                ImportKindDescriptor(
                    name=ImportKind.VENUES.value,
                    title="Venues",
                    references="operators",
                    summary="Create venues from CSV, linking each to an existing operator by name.",
                ),
            ),
            (
                ImportKind.CONTACTS.value,
                ImportKindDescriptor(
                    name=ImportKind.CONTACTS.value,
                    title="Contacts",
                    references="venues",
                    summary="Create contacts from CSV, optionally linking each to an existing venue by name.",
                ),
            ),
        )
    )


def resolve_import_kinds(
    configured: Sequence[str],
    registry: Mapping[str, ImportKindDescriptor] | None = None,
) -> Iterable[ImportKindDescriptor]:
    """
    Map configured kind names to registry descriptors, raising on unknowns.
    """
    registry = registry or get_import_kind_registry()
    unknown = sorted({kind for kind in configured if kind not in registry})
    if unknown:
        raise ValueError(
            "Unknown import kinds configured: "
            + ", ".join(unknown)
            + f". Supported kinds: {', '.join(registry)}."
        )
    return tuple(registry[kind] for kind in configured)
