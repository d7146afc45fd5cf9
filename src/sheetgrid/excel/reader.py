from __future__ import annotations

import io
import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from ..models.errors import EmptySource
from ..models.record import Cell, RawGrid

"""Spreadsheet row extractor: workbook bytes -> RawGrid.

pandas reads every sheet header-less (``header=None``) with ``dtype=object``
so cells keep their underlying value: ints stay ints, date cells arrive as
timestamps and are converted to ``datetime``. NA-string conversion is
disabled; "NA" or "null" in a cell is text, not a missing value.

Only rows with no cell at all are dropped here. Whitespace-only rows survive
and are judged later by header discovery / materialization.
"""

__all__ = [
    "SheetGrid",
    "read_workbook",
    "grid_from_frame",
    "extract_first_sheet",
    "extract_all_sheets",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SheetGrid:
    sheet_name: str
    grid: RawGrid


def _open_source(source: bytes | Path) -> Any:
    return io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source


def _parse_sheet(xls: pd.ExcelFile, name: Any) -> pd.DataFrame:
    # 書式・NA 変換なしで生の値を読む
    return xls.parse(name, header=None, dtype=object, keep_default_na=False, na_values=[])


def read_workbook(
    source: bytes | Path, target_sheets: Iterable[str] | None = None
) -> dict[str, pd.DataFrame]:
    """Read a workbook returning raw DataFrames keyed by sheet name (workbook order).

    Parameters
    ----------
    source: workbook bytes or a path to the workbook
    target_sheets: restrict to these sheet names (None means every sheet)
    """
    wanted = set(target_sheets) if target_sheets is not None else None
    frames: dict[str, pd.DataFrame] = {}
    with pd.ExcelFile(_open_source(source)) as xls:
        for name in xls.sheet_names:
            if wanted is not None and str(name) not in wanted:
                continue
            frames[str(name)] = _parse_sheet(xls, name)
    return frames


def _to_cell(value: Any) -> Cell:
    if isinstance(value, np.generic):
        value = value.item()
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, str) and value == "":
        return None
    return value


def grid_from_frame(df: pd.DataFrame) -> RawGrid:
    """Convert a header-less frame to a RawGrid, dropping rows with no cells."""
    grid: RawGrid = []
    for raw in df.itertuples(index=False, name=None):
        cells = [_to_cell(v) for v in raw]
        if all(c is None for c in cells):
            continue
        grid.append(cells)
    return grid


def extract_all_sheets(source: bytes | Path) -> list[SheetGrid]:
    frames = read_workbook(source)
    if not frames:
        raise EmptySource("workbook contains no sheets")
    sheets = [SheetGrid(sheet_name=name, grid=grid_from_frame(df)) for name, df in frames.items()]
    logger.debug(f"extracted {len(sheets)} sheets: {[s.sheet_name for s in sheets]}")
    return sheets


def extract_first_sheet(source: bytes | Path) -> SheetGrid:
    """Grid of the first sheet (sheet index 0)."""
    with pd.ExcelFile(_open_source(source)) as xls:
        if not xls.sheet_names:
            raise EmptySource("workbook contains no sheets")
        first = xls.sheet_names[0]
        df = _parse_sheet(xls, first)
    return SheetGrid(sheet_name=str(first), grid=grid_from_frame(df))
