from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Error taxonomy for the ingestion engine.

Exceptions are raised inside the engine components and converted to
``IngestFailure`` values at the ingestion boundary, so callers of
``sheetgrid.services.ingest`` never see them.
"""

__all__ = [
    "FailureKind",
    "IngestFailure",
    "SheetgridError",
    "DecodeFailure",
    "UnsupportedFormat",
    "EmptySource",
    "MalformedRow",
]


class FailureKind(Enum):
    """Classification of ingestion failures (UPPER_SNAKE values)."""
    DECODE_FAILURE = "DECODE_FAILURE"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    EMPTY_SOURCE = "EMPTY_SOURCE"
    MALFORMED_ROW = "MALFORMED_ROW"
    READ_ERROR = "READ_ERROR"
    PARSE_ERROR = "PARSE_ERROR"


@dataclass(frozen=True)
class IngestFailure:
    """Structured failure carried by ``ParseOutcome.failure`` / ``issues``."""
    kind: FailureKind
    message: str
    row: int = -1  # 0-based raw grid row, -1 when not row specific

    def to_dict(self) -> dict[str, object]:
        return {"kind": self.kind.value, "message": self.message, "row": self.row}


class SheetgridError(Exception):
    """Base class for engine errors."""

    kind: FailureKind = FailureKind.PARSE_ERROR

    def to_failure(self) -> IngestFailure:
        return IngestFailure(kind=self.kind, message=str(self))


class DecodeFailure(SheetgridError):
    """Raised when no attempted encoding produced text."""

    kind = FailureKind.DECODE_FAILURE


class UnsupportedFormat(SheetgridError):
    kind = FailureKind.UNSUPPORTED_FORMAT


class EmptySource(SheetgridError):
    kind = FailureKind.EMPTY_SOURCE


class MalformedRow(SheetgridError):
    """Row whose cell count differs from the header (recorded, never raised out)."""

    kind = FailureKind.MALFORMED_ROW

    def __init__(self, row_index: int, cell_count: int, header_count: int) -> None:
        super().__init__(
            f"row {row_index} has {cell_count} cells, header has {header_count}"
        )
        self.row_index = row_index
        self.cell_count = cell_count
        self.header_count = header_count

    def to_failure(self) -> IngestFailure:
        return IngestFailure(kind=self.kind, message=str(self), row=self.row_index)
