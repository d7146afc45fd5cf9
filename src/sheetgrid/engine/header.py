from __future__ import annotations

import logging
from collections.abc import Sequence

from openpyxl.utils import get_column_letter

from ..models.column import HeaderRow
from ..models.config_models import EngineConfig
from ..models.record import Cell, RawGrid
from .values import cell_to_text, is_header_blank

"""Header discovery engine.

Scans the first ``max_header_search_rows`` rows of a raw grid and picks the
first row with at least ``min_header_columns`` non-blank cells (a cell is
blank when it is None, empty after trimming, or the literal "undefined").
There is no scoring between candidates: the earliest qualifying row wins.
If nothing in the window qualifies, row 0 is the header.

Header cells are trimmed; blank cells become ``"{prefix} {letter}"`` where
the letter comes from the cell's own 0-based column index (A..Z).

Repeated header text is renamed ``"{name} ({prefix} {letter})"`` with the
duplicate's column letter so that no record key is silently overwritten.
"""

__all__ = [
    "column_letter",
    "fallback_name",
    "is_valid_header_row",
    "normalize_header",
    "dedupe_header_names",
    "find_header_row_index",
    "discover_header",
]

logger = logging.getLogger(__name__)

_ALPHABET_SIZE = 26


def column_letter(index: int) -> str:
    """Alphabetic label for a 0-based column index.

    Single letters A..Z; wider tables continue with spreadsheet letters
    (AA, AB, ...) so fallback names stay unique.
    """
    if index < 0:
        raise ValueError(f"column index must be >= 0: {index}")
    if index < _ALPHABET_SIZE:
        return chr(ord("A") + index)
    return get_column_letter(index + 1)


def fallback_name(index: int, prefix: str = "Column") -> str:
    return f"{prefix} {column_letter(index)}"


def is_valid_header_row(row: Sequence[Cell] | None, min_columns: int = 2) -> bool:
    if not row:
        return False
    non_empty = sum(1 for cell in row if not is_header_blank(cell))
    return non_empty >= min_columns


def normalize_header(cell: Cell, index: int, prefix: str = "Column") -> str:
    if is_header_blank(cell):
        return fallback_name(index, prefix)
    return cell_to_text(cell)


def dedupe_header_names(names: Sequence[str], prefix: str = "Column") -> list[str]:
    """Rename repeated names so every header is unique.

    The first occurrence keeps its text; later ones get the fallback token and
    their own column letter appended. A further clash (pathological input)
    gets a running ``#n`` suffix.
    """
    seen: set[str] = set()
    result: list[str] = []
    for index, name in enumerate(names):
        candidate = name
        if candidate in seen:
            candidate = f"{name} ({fallback_name(index, prefix)})"
            n = 2
            while candidate in seen:
                candidate = f"{name} ({fallback_name(index, prefix)}) #{n}"
                n += 1
        seen.add(candidate)
        result.append(candidate)
    return result


def find_header_row_index(grid: RawGrid, config: EngineConfig | None = None) -> int:
    """Index of the first qualifying header row; 0 when none qualifies, -1 for an empty grid."""
    cfg = config or EngineConfig()
    if not grid:
        return -1
    search_limit = min(cfg.max_header_search_rows, len(grid))
    for i in range(search_limit):
        if is_valid_header_row(grid[i], cfg.min_header_columns):
            return i
    logger.debug(f"no header row in first {search_limit} rows -> using row 0")
    return 0


def discover_header(grid: RawGrid, config: EngineConfig | None = None) -> HeaderRow:
    """Find and normalize the header row of ``grid``."""
    cfg = config or EngineConfig()
    index = find_header_row_index(grid, cfg)
    if index < 0:
        return HeaderRow(header_row_index=-1, names=())
    prefix = cfg.fallback_column_prefix
    names = [normalize_header(cell, i, prefix) for i, cell in enumerate(grid[index])]
    if cfg.dedupe_headers:
        deduped = dedupe_header_names(names, prefix)
        if deduped != names:
            renamed = [f"{a!r}->{b!r}" for a, b in zip(names, deduped, strict=True) if a != b]
            logger.debug(f"duplicate header names renamed: {renamed}")
        names = deduped
    logger.debug(f"header row {index}: {names}")
    return HeaderRow(header_row_index=index, names=tuple(names))
