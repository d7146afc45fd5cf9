"""Integration tests for multi-file runs (runner + issue log + CLI)."""
from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from sheetgrid.cli import main as cli_main
from sheetgrid.logging.error_log import IssueLogBuffer
from sheetgrid.models.config_models import EngineConfig
from sheetgrid.services.ingest import ingest_bytes
from sheetgrid.services.runner import ProcessingError, collect_inputs, run_files


@pytest.fixture()
def mixed_inputs(temp_workdir: Path, listing_csv_euckr: bytes, xlsx_factory) -> Path:
    data_dir = temp_workdir / "data"
    (data_dir / "a_listing.csv").write_bytes(listing_csv_euckr)
    (data_dir / "b_book.xlsx").write_bytes(
        xlsx_factory(
            {
                "출품": [
                    ["리스트", None],
                    ["차량명", "출품일"],
                    ["K5", datetime(2025, 10, 11)],
                ],
                "메모": [["항목", "내용"], ["a", "b"]],
            }
        )
    )
    (data_dir / "c_broken.xlsx").write_bytes(b"not a workbook")
    return data_dir


def test_collect_inputs_expands_directory(mixed_inputs: Path):
    files = collect_inputs([mixed_inputs])
    assert [f.name for f in files] == ["a_listing.csv", "b_book.xlsx", "c_broken.xlsx"]


def test_collect_inputs_missing(temp_workdir: Path):
    with pytest.raises(ProcessingError):
        collect_inputs([temp_workdir / "nope.csv"])


def test_run_files_partial_failure(mixed_inputs: Path):
    issue_log = IssueLogBuffer(logs_dir=mixed_inputs.parent / "logs")
    result, outcomes = run_files([mixed_inputs], EngineConfig(), issue_log=issue_log)
    assert result.success_files == 2
    assert result.failed_files == 1
    assert result.total_rows == 4
    assert [o.source.original_name for o in outcomes] == ["a_listing.csv", "b_book.xlsx", "c_broken.xlsx"]
    assert outcomes[1].source.sheet_name == "출품"
    assert [s.status for s in result.file_stats] == ["success", "success", "failed"]
    assert len(issue_log) == 1


def test_run_files_all_sheets(mixed_inputs: Path):
    result, outcomes = run_files([mixed_inputs / "b_book.xlsx"], all_sheets=True)
    assert [o.source.sheet_name for o in outcomes] == ["출품", "메모"]
    # 1ブック = 1ファイルとして数える
    assert result.success_files == 1
    assert result.total_files == 1
    assert result.total_rows == 2
    assert [s.sheet_name for s in result.file_stats] == ["출품", "메모"]


def test_run_files_all_sheets_failed_sheet_fails_workbook(mixed_inputs: Path):
    sheets = [ingest_bytes("b_book.csv", b"a,b\n1,2\n"), ingest_bytes("b_book.csv", b"")]
    with patch("sheetgrid.services.runner.ingest_all_sheets", return_value=sheets):
        result, outcomes = run_files([mixed_inputs / "b_book.xlsx"], all_sheets=True)
    assert len(outcomes) == 2
    assert result.success_files == 0
    assert result.failed_files == 1
    assert [s.status for s in result.file_stats] == ["success", "failed"]


def test_cli_end_to_end(mixed_inputs: Path, capsys):
    code = cli_main(["data", "--issue-log"])
    out = capsys.readouterr().out
    assert code == 2
    records = [json.loads(line) for line in out.splitlines() if line.startswith("{")]
    assert len(records) == 4
    assert {"차량명": "K5", "출품일": "2025-10-11"} in records
    assert out.strip().splitlines()[-1].startswith("SUMMARY files=3/3 success=2 failed=1 rows=4")
    log_files = list((mixed_inputs.parent / "logs").glob("issues-*.log"))
    assert len(log_files) == 1
    issue = json.loads(log_files[0].read_text(encoding="utf-8").splitlines()[0])
    assert issue["file"] == "c_broken.xlsx"
    assert issue["issue_type"] == "PARSE_ERROR"
