from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from ..logging.error_log import IssueLogBuffer
from ..models.config_models import EngineConfig
from ..models.outcome import ParseOutcome
from ..models.run_result import FileStat, RunResult
from .ingest import ingest_all_sheets, ingest_path
from .progress import ProgressTracker

"""Multi-file ingestion run used by the CLI.

Files are ingested one after another; a failing file never stops the run.
Each outcome's failure and issues go to the issue log buffer when given.
Success and failure are counted per input file; with ``all_sheets`` a
workbook succeeds only when every sheet does, while ``file_stats`` keeps one
entry per sheet.
"""

__all__ = [
    "ProcessingError",
    "collect_inputs",
    "run_files",
]

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Fatal run error (nothing to process)."""


def collect_inputs(paths: Sequence[Path]) -> list[Path]:
    """Expand directories (non-recursive, sorted) and keep plain files."""
    files: list[Path] = []
    for p in paths:
        if p.is_dir():
            files.extend(sorted(c for c in p.iterdir() if c.is_file()))
        elif p.exists():
            files.append(p)
        else:
            raise ProcessingError(f"input not found: {p}")
    if not files:
        raise ProcessingError("no input files")
    return files


def _ingest_one(path: Path, config: EngineConfig, all_sheets: bool) -> list[ParseOutcome]:
    if not all_sheets:
        return [ingest_path(path, config)]
    try:
        data = path.read_bytes()
    except OSError:
        # 読込失敗は ingest_path 側の READ_ERROR で表現する
        return [ingest_path(path, config)]
    return ingest_all_sheets(path.name, data, config)


def run_files(
    paths: Sequence[Path],
    config: EngineConfig | None = None,
    *,
    all_sheets: bool = False,
    issue_log: IssueLogBuffer | None = None,
) -> tuple[RunResult, list[ParseOutcome]]:
    """Ingest every file in ``paths``; returns the run result and all outcomes."""
    cfg = config or EngineConfig()
    start_time = datetime.now(UTC)
    files = collect_inputs(paths)

    outcomes: list[ParseOutcome] = []
    file_stats: list[FileStat] = []
    file_ok_flags: list[bool] = []
    with ProgressTracker(len(files)) as progress:
        for path in files:
            progress.start_file(path)
            started = time.perf_counter()
            file_outcomes = _ingest_one(path, cfg, all_sheets)
            elapsed = time.perf_counter() - started
            for outcome in file_outcomes:
                if issue_log is not None:
                    issue_log.add_outcome(outcome)
                status = "success" if outcome.ok else "failed"
                if outcome.ok:
                    logger.info(
                        f"{path.name}: rows={outcome.source.row_count} columns={outcome.source.column_count}"
                        + (f" sheet={outcome.source.sheet_name}" if outcome.source.sheet_name else "")
                    )
                else:
                    logger.error(f"{path.name}: {outcome.failure.kind.value} {outcome.failure.message}")
                file_stats.append(
                    FileStat(
                        file_name=path.name,
                        status=status,
                        rows=outcome.source.row_count,
                        columns=outcome.source.column_count,
                        elapsed_seconds=elapsed,
                        sheet_name=outcome.source.sheet_name,
                        issues=len(outcome.issues),
                        error=outcome.failure.message if outcome.failure else None,
                    )
                )
            outcomes.extend(file_outcomes)
            file_ok = all(o.ok for o in file_outcomes)
            file_ok_flags.append(file_ok)
            progress.finish_file(success=file_ok, rows=sum(o.source.row_count for o in file_outcomes))

    end_time = datetime.now(UTC)
    elapsed_total = (end_time - start_time).total_seconds()
    # ブックは全シート成功でのみ成功
    success = sum(1 for ok in file_ok_flags if ok)
    total_rows = sum(s.rows for s in file_stats)
    result = RunResult(
        success_files=success,
        failed_files=len(file_ok_flags) - success,
        total_rows=total_rows,
        total_columns=sum(s.columns for s in file_stats),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_total,
        throughput_rows_per_sec=(total_rows / elapsed_total) if elapsed_total > 0 else 0.0,
        file_stats=file_stats,
    )
    return result, outcomes
