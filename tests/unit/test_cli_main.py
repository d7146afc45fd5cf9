from __future__ import annotations
import json
import os
from pathlib import Path

import pytest

from sheetgrid.cli import main as cli_main


@pytest.fixture()
def listing_file(temp_workdir: Path, listing_csv_euckr: bytes) -> Path:
    p = temp_workdir / "data" / "listing.csv"
    p.write_bytes(listing_csv_euckr)
    return p


def _record_lines(out: str) -> list[dict]:
    return [json.loads(line) for line in out.splitlines() if line.startswith("{")]


def test_cli_no_inputs_is_fatal(temp_workdir: Path, capsys):
    code = cli_main([])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR processing: no input files" in out


def test_cli_missing_input_is_fatal(temp_workdir: Path, capsys):
    code = cli_main(["data/missing.csv"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR processing: input not found:" in out


def test_cli_prints_records(listing_file: Path, capsys):
    code = cli_main([str(listing_file)])
    out = capsys.readouterr().out
    assert code == 0
    rows = _record_lines(out)
    assert [r["출품번호"] for r in rows] == ["0001", "0002", "0003"]
    assert "SUMMARY files=1/1 success=1 failed=0 rows=3 columns=9" in out


def test_cli_filter_sort_limit(listing_file: Path, capsys):
    code = cli_main([str(listing_file), "--filter", "연료=가솔린", "--sort", "주행거리", "--desc", "--limit", "1"])
    out = capsys.readouterr().out
    assert code == 0
    rows = _record_lines(out)
    assert [r["출품번호"] for r in rows] == ["0003"]


def test_cli_range_filter(listing_file: Path, capsys):
    cli_main([str(listing_file), "--range", "출품가=1000:", "--sort", "출품가"])
    rows = _record_lines(capsys.readouterr().out)
    assert [r["출품가"] for r in rows] == ["1200", "1500"]


def test_cli_bad_filter_argument_exits(listing_file: Path):
    with pytest.raises(SystemExit):
        cli_main([str(listing_file), "--filter", "no-equals-sign"])


def test_cli_json_document(listing_file: Path, capsys):
    cli_main([str(listing_file), "--json", "--limit", "2"])
    docs = _record_lines(capsys.readouterr().out)
    assert len(docs) == 1
    assert docs[0]["total"] == 2
    assert docs[0]["metadata"]["encoding"] == "cp949"
    assert [c["name"] for c in docs[0]["columns"]][:2] == ["출품번호", "차량명"]


def test_cli_inspect_data(listing_file: Path, capsys):
    code = cli_main([str(listing_file), "--inspect-data"])
    out = capsys.readouterr().out
    assert code == 0
    assert "FILE: listing.csv" in out
    assert "COLUMN: 출품가 type=numeric" in out
    assert "COLUMN: 차량명 type=textual" in out
    assert _record_lines(out) == []


def test_cli_vehicles(listing_file: Path, capsys):
    cli_main([str(listing_file), "--vehicles"])
    out = capsys.readouterr().out
    assert "vehicles=3 avg_price=1200 avg_mileage=44212 years=2017-2020" in out


def test_cli_config_error(listing_file: Path, temp_workdir: Path, capsys):
    (temp_workdir / "config" / "ingest.yml").write_text("bogus: 1\n", encoding="utf-8")
    code = cli_main([str(listing_file)])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR config: config validation failed" in out


def test_cli_dotenv_sets_encoding(listing_file: Path, temp_workdir: Path, capsys):
    (temp_workdir / ".env").write_text("SHEETGRID_LEGACY_ENCODING=euc-kr\n", encoding="utf-8")
    cli_main([str(listing_file), "--json"])
    docs = _record_lines(capsys.readouterr().out)
    # フィクスチャは KS X 1001 の範囲内なので euc-kr でも読める
    assert docs[0]["metadata"]["encoding"] == "euc-kr"
    os.environ.pop("SHEETGRID_LEGACY_ENCODING", None)


def test_cli_debug_mode(listing_file: Path, capsys):
    cli_main([str(listing_file), "--debug"])
    out = capsys.readouterr().out
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG header row 0" in out


def test_cli_issue_log(temp_workdir: Path, capsys):
    (temp_workdir / "data" / "ragged.csv").write_bytes(b"a,b\n1,2,3\n")
    code = cli_main(["data/ragged.csv", "--issue-log"])
    assert code == 0
    logs = list((temp_workdir / "logs").glob("issues-*.log"))
    assert len(logs) == 1
    row = json.loads(logs[0].read_text(encoding="utf-8").splitlines()[0])
    assert row["issue_type"] == "MALFORMED_ROW"
    assert "issues written to" in capsys.readouterr().out
