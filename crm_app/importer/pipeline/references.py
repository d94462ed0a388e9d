"""
Reference lookup tables for cross-entity columns.

Venue rows may name an operator and contact rows may name a venue. The
table for a job is loaded once, before any row is validated, and is
read-only afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping

from crm_app.models.importer.schema import ImportKind
from crm_app.services.entity_store import SQLAlchemyEntityStore

logger = logging.getLogger(__name__)


def normalize_reference_name(name: str | None) -> str:
    return (name or "").strip().lower()


@dataclass(frozen=True)
class ReferenceTable:
    """Case-insensitive name to id lookup for one referenced entity kind."""

    entity_label: str
    column: str
    ids_by_name: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_pairs(cls, entity_label: str, column: str, pairs: Iterable[tuple[int, str]]) -> "ReferenceTable":
        # Later entries overwrite earlier ones when names collide case-insensitively.
        table: dict[str, int] = {}
        for entity_id, name in pairs:
            key = normalize_reference_name(name)
            if key:
                table[key] = entity_id
        return cls(entity_label=entity_label, column=column, ids_by_name=MappingProxyType(table))

    def resolve(self, name: str | None) -> int | None:
        return self.ids_by_name.get(normalize_reference_name(name))

    def __len__(self) -> int:
        return len(self.ids_by_name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_reference_name(name) in self.ids_by_name


class ReferenceResolver:
    """Build the lookup table an import kind needs from the entity store."""

    def __init__(self, store: SQLAlchemyEntityStore | None = None) -> None:
        self.store = store or SQLAlchemyEntityStore()

    def build(self, kind: ImportKind | str) -> ReferenceTable:
        resolved_kind = ImportKind(getattr(kind, "value", kind))
        if resolved_kind is ImportKind.VENUES:
            table = ReferenceTable.from_pairs("Operator", "operatorName", self.store.list_operators_by_name())
        else:
            table = ReferenceTable.from_pairs("Venue", "venueName", self.store.list_venues_by_name())
        logger.debug(
            "Reference table loaded",
            extra={"importer_kind": resolved_kind.value, "importer_reference_count": len(table)},
        )
        return table
