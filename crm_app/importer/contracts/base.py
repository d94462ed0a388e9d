"""Shared column-contract primitives for CSV import kinds.

A contract lists the canonical columns of one import kind, the aliases
accepted for each header, and the example values used to render the
downloadable template.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import Mapping, Sequence, Tuple


def normalize_header(header: str) -> str:
    """Normalize a CSV header for comparison (case/space/underscore/hyphen agnostic)."""

    token = header.strip().lstrip("\ufeff").lower()
    for char in (" ", "-", ".", "_"):
        token = token.replace(char, "")
    return token


@dataclass(frozen=True)
class FieldSpec:
    """Metadata describing one canonical import column."""

    name: str
    label: str
    description: str
    required: bool = False
    aliases: Tuple[str, ...] = ()
    example: str = ""

    def headers(self) -> Tuple[str, ...]:
        """Return the canonical header plus aliases for matching."""

        return (self.name, *self.aliases)


@dataclass(frozen=True)
class ImportContract:
    """Column contract for one import kind."""

    kind: str
    fields: Tuple[FieldSpec, ...]

    def required_headers(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self.fields if spec.required)

    def supported_headers(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self.fields)

    def alias_map(self) -> Mapping[str, str]:
        """Map normalized header tokens to canonical names (includes aliases)."""

        mapping: dict[str, str] = {}
        for spec in self.fields:
            for header in spec.headers():
                mapping[normalize_header(header)] = spec.name
        return mapping

    def resolve_headers(self, headers: Sequence[str]) -> Tuple[str, ...]:
        """Resolve raw headers to canonical names; unknown headers pass through unchanged."""

        alias_map = self.alias_map()
        return tuple(alias_map.get(normalize_header(header), header) for header in headers)

    def render_template(self) -> str:
        """CSV text with the header line and one example row."""

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(self.supported_headers())
        writer.writerow(spec.example for spec in self.fields)
        return buffer.getvalue()
