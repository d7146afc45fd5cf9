# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from sheetgrid.logging.init import reset_logging


LISTING_CSV = (
    "\n"
    "출품번호,차량명,출품가,연식,주행거리,색상,연료,변속기,평가점\n"
    "0001,그랜저 IG,1500,2019,\"43,437 Km\",흰색,가솔린,오토,A4\n"
    "0002,쏘나타 DN8,1200,2020,\"1,200 Km\",검정,LPG,오토,B3\n"
    "0003,아반떼,900,2017,\"88,000 Km\",은색,가솔린,수동,C2\n"
)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("SHEETGRID_CONFIG", "SHEETGRID_LEGACY_ENCODING", "SHEETGRID_TYPE_THRESHOLD"):
        monkeypatch.delenv(name, raising=False)
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def listing_csv_text() -> str:
    return LISTING_CSV


@pytest.fixture()
def listing_csv_euckr(listing_csv_text: str) -> bytes:
    return listing_csv_text.encode("euc-kr")


def make_xlsx_bytes(tmp_path: Path, sheets: dict[str, list[list[object]]], name: str = "book.xlsx") -> bytes:
    p = tmp_path / name
    with pd.ExcelWriter(p, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return p.read_bytes()


@pytest.fixture()
def xlsx_factory(tmp_path: Path):
    def _make(sheets: dict[str, list[list[object]]], name: str = "book.xlsx") -> bytes:
        return make_xlsx_bytes(tmp_path, sheets, name)
    return _make


@pytest.fixture()
def sample_config_yaml() -> str:
    return """header:
  min_columns: 3
  max_search_rows: 10
  fallback_prefix: Col
rows:
  blank_lines: skip
encoding:
  legacy: cp949
inference:
  threshold: 0.9
sort:
  null_placement: first
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "ingest.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg
