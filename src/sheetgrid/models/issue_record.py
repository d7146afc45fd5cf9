from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from .errors import IngestFailure

"""IssueRecord model for the ingestion issue log.

One JSON line per failure or non-fatal issue observed while ingesting a
file. ``row`` is the 0-based raw grid row, or -1 for file-level issues.
The key set is fixed; ``to_json_line`` never adds keys.
"""

__all__ = [
    "IssueRecord",
]


@dataclass(frozen=True)
class IssueRecord:
    """Structured issue record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: source file name
        sheet: sheet name ("" for delimited text)
        row: raw grid row (0-based), -1 when not row specific
        issue_type: UPPER_SNAKE classification (FailureKind value)
        message: human readable description
    """
    timestamp: str
    file: str
    sheet: str
    row: int
    issue_type: str
    message: str

    @staticmethod
    def create(file: str, sheet: str, row: int, issue_type: str, message: str) -> IssueRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return IssueRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            issue_type=issue_type,
            message=message,
        )

    @staticmethod
    def from_failure(file: str, sheet: str | None, failure: IngestFailure) -> IssueRecord:
        return IssueRecord.create(
            file=file,
            sheet=sheet or "",
            row=failure.row,
            issue_type=failure.kind.value,
            message=failure.message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
