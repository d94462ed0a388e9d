"""
Row validation rules for venue and contact imports.

Each rule inspects one column of a parsed row, writes its normalized value
into the record being built, or returns a :class:`RowError`. Validation
short-circuits on the first error. Rules run in a fixed order: required
columns, enumerated values, formats and numbers, then cross-references.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, MutableMapping, Sequence, Type, Union

from crm_app.importer.adapters.csv_rows import CSVRow
from crm_app.importer.contracts import CONTACT_CONTRACT, VENUE_CONTRACT
from crm_app.models.enums import VenueStage, VenueStatus, VenueType
from crm_app.models.importer.schema import ImportKind

from .errors import ErrorOrigin, RowError
from .references import ReferenceTable

_EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_TRUTHY_TOKENS = frozenset({"true", "1", "yes", "y", "on"})
_NUMERIC_INPUT = re.compile(r"[0-9.,+-]+")


@dataclass(frozen=True)
class VenueRecord:
    """A venue row that passed validation, ready for the writer."""

    row_number: int
    name: str
    address: str
    city: str
    state: str
    venue_type: VenueType
    stage: VenueStage
    status: VenueStatus
    capacity: int | None = None
    deal_value: float | None = None
    operator_id: int | None = None
    notes: str | None = None

    def as_store_fields(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "venue_type": self.venue_type.value,
            "capacity": self.capacity,
            "stage": self.stage.value,
            "status": self.status.value,
            "deal_value": self.deal_value,
            "operator_id": self.operator_id,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class ContactRecord:
    """A contact row that passed validation, ready for the writer."""

    row_number: int
    name: str
    email: str
    is_primary: bool = False
    phone: str | None = None
    role: str | None = None
    linked_in: str | None = None
    venue_id: int | None = None

    def as_store_fields(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "is_primary": self.is_primary,
            "linked_in": self.linked_in,
        }


NormalizedRecord = Union[VenueRecord, ContactRecord]
ValidationOutcome = Union[VenueRecord, ContactRecord, RowError]


def normalize_choice(value: str) -> str:
    """Lower-case and map hyphens and inner whitespace to underscores."""
    token = value.strip().lower()
    return re.sub(r"[\s\-]+", "_", token)


def _error(row: CSVRow, column: str, message: str) -> RowError:
    return RowError(row_number=row.row_number, field=column, message=message, origin=ErrorOrigin.VALIDATION)


class RowRule:
    """Base rule: check one column and store its normalized value under ``target``."""

    def __init__(self, column: str, target: str | None = None) -> None:
        self.column = column
        self.target = target or column

    def apply(
        self,
        row: CSVRow,
        normalized: MutableMapping[str, Any],
        references: ReferenceTable | None,
    ) -> RowError | None:
        raise NotImplementedError


class RequiredFieldRule(RowRule):
    def __init__(self, column: str, label: str, target: str | None = None) -> None:
        super().__init__(column, target)
        self.label = label

    def apply(self, row, normalized, references):
        value = row.get(self.column)
        if not value:
            return _error(row, self.column, f"{self.label} is required")
        normalized[self.target] = value
        return None


class OptionalTextRule(RowRule):
    def apply(self, row, normalized, references):
        normalized[self.target] = row.get(self.column) or None
        return None


class ChoiceRule(RowRule):
    """Enumerated column; empty takes the default, unknown values are echoed back raw."""

    def __init__(
        self,
        column: str,
        enum_cls: Type[Enum],
        default: Enum,
        error_prefix: str,
        target: str | None = None,
    ) -> None:
        super().__init__(column, target)
        self.enum_cls = enum_cls
        self.default = default
        self.error_prefix = error_prefix

    def apply(self, row, normalized, references):
        raw = row.get(self.column)
        if not raw:
            normalized[self.target] = self.default
            return None
        try:
            normalized[self.target] = self.enum_cls(normalize_choice(raw))
        except ValueError:
            return _error(row, self.column, f"{self.error_prefix}: {raw}")
        return None


class MaxLengthRule(RowRule):
    def __init__(self, column: str, label: str, max_length: int) -> None:
        super().__init__(column)
        self.label = label
        self.max_length = max_length

    def apply(self, row, normalized, references):
        if len(row.get(self.column)) > self.max_length:
            return _error(row, self.column, f"{self.label} must be at most {self.max_length} characters")
        return None


class EmailFormatRule(RowRule):
    def apply(self, row, normalized, references):
        value = row.get(self.column)
        if not value:
            return None
        if not _EMAIL_REGEX.match(value):
            return _error(row, self.column, "Invalid email format")
        normalized[self.target] = value
        return None


class NumberRule(RowRule):
    """Optional positive number; empty yields ``None``.

    Only ASCII digits, ``.``, ``,`` and a sign are accepted; anything else fails the row.
    """

    def __init__(
        self,
        column: str,
        error_prefix: str,
        parser: Callable[[str], Any],
        target: str | None = None,
    ) -> None:
        super().__init__(column, target)
        self.error_prefix = error_prefix
        self.parser = parser

    def apply(self, row, normalized, references):
        raw = row.get(self.column)
        if not raw:
            normalized[self.target] = None
            return None
        if not _NUMERIC_INPUT.fullmatch(raw):
            return _error(row, self.column, f"{self.error_prefix}: {raw}")
        try:
            number = self.parser(raw.replace(",", ""))
        except ValueError:
            return _error(row, self.column, f"{self.error_prefix}: {raw}")
        if isinstance(number, float) and not math.isfinite(number):
            return _error(row, self.column, f"{self.error_prefix}: {raw}")
        if number <= 0:
            return _error(row, self.column, f"{self.error_prefix}: {raw}")
        normalized[self.target] = number
        return None


class BooleanFlagRule(RowRule):
    def apply(self, row, normalized, references):
        normalized[self.target] = row.get(self.column).lower() in _TRUTHY_TOKENS
        return None


class ReferenceRule(RowRule):
    """Resolve a named entity through the job's reference table; empty means no link."""

    def apply(self, row, normalized, references):
        raw = row.get(self.column)
        if not raw:
            normalized[self.target] = None
            return None
        entity_id = references.resolve(raw) if references is not None else None
        if entity_id is None:
            label = references.entity_label if references is not None else "Reference"
            return _error(row, self.column, f"{label} not found: {raw}")
        normalized[self.target] = entity_id
        return None


class RowValidator:
    """Apply an ordered rule list to a row and build the typed record."""

    def __init__(self, kind: ImportKind, rules: Sequence[RowRule], record_type: Type[NormalizedRecord]) -> None:
        self.kind = kind
        self.rules = tuple(rules)
        self.record_type = record_type

    def validate(self, row: CSVRow, references: ReferenceTable | None) -> ValidationOutcome:
        normalized: dict[str, Any] = {"row_number": row.row_number}
        for rule in self.rules:
            error = rule.apply(row, normalized, references)
            if error is not None:
                return error
        return self.record_type(**normalized)


def _required_rules(contract, targets: dict[str, str] | None = None) -> list[RowRule]:
    targets = targets or {}
    return [
        RequiredFieldRule(spec.name, spec.label, target=targets.get(spec.name))
        for spec in contract.fields
        if spec.required
    ]


def build_venue_validator() -> RowValidator:
    rules: list[RowRule] = _required_rules(VENUE_CONTRACT)
    rules += [
        ChoiceRule("type", VenueType, VenueType.OTHER, "Invalid venue type", target="venue_type"),
        ChoiceRule("stage", VenueStage, VenueStage.LEAD, "Invalid stage"),
        ChoiceRule("status", VenueStatus, VenueStatus.PROSPECT, "Invalid status"),
        MaxLengthRule("name", "Name", 255),
        MaxLengthRule("address", "Address", 500),
        MaxLengthRule("city", "City", 100),
        MaxLengthRule("state", "State", 50),
        NumberRule("capacity", "Invalid capacity", int),
        NumberRule("dealValue", "Invalid deal value", float, target="deal_value"),
        OptionalTextRule("notes"),
        ReferenceRule("operatorName", target="operator_id"),
    ]
    return RowValidator(ImportKind.VENUES, rules, VenueRecord)


def build_contact_validator() -> RowValidator:
    rules: list[RowRule] = _required_rules(CONTACT_CONTRACT)
    rules += [
        MaxLengthRule("name", "Name", 255),
        EmailFormatRule("email"),
        MaxLengthRule("email", "Email", 255),
        OptionalTextRule("phone"),
        MaxLengthRule("phone", "Phone", 50),
        OptionalTextRule("role"),
        MaxLengthRule("role", "Role", 255),
        OptionalTextRule("linkedIn", target="linked_in"),
        MaxLengthRule("linkedIn", "LinkedIn", 500),
        BooleanFlagRule("isPrimary", target="is_primary"),
        ReferenceRule("venueName", target="venue_id"),
    ]
    return RowValidator(ImportKind.CONTACTS, rules, ContactRecord)


def get_row_validator(kind: ImportKind | str) -> RowValidator:
    resolved = ImportKind(getattr(kind, "value", kind))
    if resolved is ImportKind.VENUES:
        return build_venue_validator()
    return build_contact_validator()


def validate_row(row: CSVRow, references: ReferenceTable | None, *, kind: ImportKind | str) -> ValidationOutcome:
    """Validate one row of ``kind`` against its reference table."""
    return get_row_validator(kind).validate(row, references)
