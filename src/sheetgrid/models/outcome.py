from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .column import ColumnMetadata
from .errors import IngestFailure
from .record import Record

"""ParseOutcome: the unit handed to external collaborators.

An outcome always carries records, column metadata and a source descriptor.
``failure`` is set when the source produced no usable data (unsupported
format, unreadable bytes, empty grid); ``issues`` collects non-fatal
observations such as decode degradation or ragged rows.
"""

__all__ = [
    "SourceDescriptor",
    "ParseOutcome",
]


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class SourceDescriptor:
    original_name: str  # file name as given by the caller
    detected_format: str  # "csv" | "xlsx" | "xls" | extension of unsupported input
    row_count: int = 0
    column_count: int = 0
    sheet_name: str | None = None  # spreadsheet path only
    header_row_index: int = -1
    total_raw_rows: int = 0
    encoding: str | None = None  # delimited-text path only
    parsed_at: str = field(default_factory=_utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "originalName": self.original_name,
            "detectedFormat": self.detected_format,
            "rowCount": self.row_count,
            "columnCount": self.column_count,
            "sheetName": self.sheet_name,
            "headerRowIndex": self.header_row_index,
            "totalRawRows": self.total_raw_rows,
            "encoding": self.encoding,
            "parsedAt": self.parsed_at,
        }


@dataclass(frozen=True)
class ParseOutcome:
    records: list[Record]
    columns: list[ColumnMetadata]
    source: SourceDescriptor
    failure: IngestFailure | None = None
    issues: list[IngestFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def to_dicts(self) -> list[dict[str, Any]]:
        """Generic projection: plain dicts keyed by column name."""
        return [r.to_dict() for r in self.records]

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "data": self.to_dicts(),
            "columns": [c.to_dict() for c in self.columns],
            "metadata": self.source.to_dict(),
        }
        if self.failure is not None:
            body["error"] = self.failure.to_dict()
        if self.issues:
            body["issues"] = [i.to_dict() for i in self.issues]
        return body

    @classmethod
    def failed(
        cls, source: SourceDescriptor, failure: IngestFailure, issues: list[IngestFailure] | None = None
    ) -> ParseOutcome:
        return cls(records=[], columns=[], source=source, failure=failure, issues=list(issues or []))
