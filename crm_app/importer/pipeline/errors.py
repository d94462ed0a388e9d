"""
Row-level error entries recorded on import jobs.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

GENERAL_FIELD = "general"


class ErrorOrigin(str, enum.Enum):
    """Which pipeline stage produced an error entry."""

    VALIDATION = "validation"
    WRITE = "write"
    PARSE = "parse"


@dataclass(frozen=True)
class RowError:
    """A failed row: source line, offending column and a readable message.

    ``origin`` is kept on the stored record for diagnostics but is not part
    of the payload returned to API clients.
    """

    row_number: int | None
    field: str
    message: str
    origin: ErrorOrigin = ErrorOrigin.VALIDATION

    def as_public_dict(self) -> dict[str, Any]:
        return {"row_number": self.row_number, "field": self.field, "message": self.message}

    def as_record(self) -> dict[str, Any]:
        payload = self.as_public_dict()
        payload["origin"] = self.origin.value
        return payload


class EntityWriteError(Exception):
    """Raised by the entity writer when the store rejects a row."""

    def __init__(self, row_number: int, message: str) -> None:
        super().__init__(message)
        self.row_number = row_number

    def to_row_error(self) -> RowError:
        return RowError(row_number=self.row_number, field=GENERAL_FIELD, message=str(self), origin=ErrorOrigin.WRITE)
