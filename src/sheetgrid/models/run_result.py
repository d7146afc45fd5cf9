from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Run result models for multi-file CLI runs.

Aggregates per-file outcomes into the figures of the SUMMARY line.
"""

__all__ = [
    "FileStat",
    "RunResult",
]


@dataclass(frozen=True)
class FileStat:
    """Per-file ingestion statistics."""
    file_name: str
    status: str  # success/failed
    rows: int
    columns: int
    elapsed_seconds: float
    sheet_name: str | None = None
    issues: int = 0  # non-fatal issues (decode degradation, ragged rows)
    error: str | None = None  # failure message when status == failed


@dataclass(frozen=True)
class RunResult:
    success_files: int
    failed_files: int
    total_rows: int
    total_columns: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float
    file_stats: list[FileStat] | None = None

    @property
    def total_files(self) -> int:
        return self.success_files + self.failed_files
