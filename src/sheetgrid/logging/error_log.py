from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from sheetgrid.models.issue_record import IssueRecord
from sheetgrid.models.outcome import ParseOutcome

"""Issue log buffering.

- JSON Lines with a fixed key set (see IssueRecord)
- one file per run: ``logs/issues-YYYYMMDD-HHMMSS.log`` (UTC), created lazily
- records are buffered and written on flush()
"""

__all__ = [
    "IssueRecord",
    "IssueLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class IssueLogBuffer:
    """In-memory buffer of issue records. Flush appends JSON Lines.

    シリアル実行前提のためロックは持たない。
    """
    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[IssueRecord] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir or LOGS_DIR

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"issues-{stamp}.log"
        return self._file_path

    def append(self, record: IssueRecord) -> None:
        self._records.append(record)

    def add_outcome(self, outcome: ParseOutcome) -> int:
        """Buffer the failure and issues of ``outcome``; returns the count added."""
        failures = list(outcome.issues)
        if outcome.failure is not None:
            failures.insert(0, outcome.failure)
        for failure in failures:
            self.append(
                IssueRecord.from_failure(outcome.source.original_name, outcome.source.sheet_name, failure)
            )
        return len(failures)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the log path, or None when nothing was buffered."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
