from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..models.column import HeaderRow
from ..models.errors import MalformedRow
from ..models.record import RawGrid, Record
from .values import cell_to_text, is_blank

"""Row materializer: raw grid rows -> uniform records.

Every row after the header row becomes a record keyed by the header names;
cells are coerced to trimmed text. Short rows are padded with "" and extra
trailing cells are ignored; rows whose ignored cells hold data are reported
as malformed.

A pruning pass then drops every column that is "" in all records, unless
that would leave no column at all.
"""

__all__ = [
    "Materialized",
    "materialize_rows",
    "prune_empty_columns",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Materialized:
    columns: list[str]
    records: list[Record]
    pruned_columns: list[str] = field(default_factory=list)
    malformed_rows: list[MalformedRow] = field(default_factory=list)


def prune_empty_columns(columns: list[str], records: list[Record]) -> tuple[list[str], list[str]]:
    """Split ``columns`` into (kept, dropped); never returns zero kept columns."""
    kept = [c for c in columns if any(r.values.get(c, "") != "" for r in records)]
    if not kept:
        return list(columns), []
    dropped = [c for c in columns if c not in kept]
    return kept, dropped


def materialize_rows(grid: RawGrid, header: HeaderRow, skip_empty_rows: bool = True) -> Materialized:
    names = list(header.names)
    if header.header_row_index < 0 or not names:
        return Materialized(columns=names, records=[])

    width = len(names)
    records: list[Record] = []
    malformed: list[MalformedRow] = []
    for i in range(header.header_row_index + 1, len(grid)):
        row = grid[i]
        if skip_empty_rows and all(is_blank(cell) for cell in row):
            continue
        if len(row) > width and not all(is_blank(cell) for cell in row[width:]):
            # 値のある余剰セルは捨てるので記録する
            malformed.append(MalformedRow(i, len(row), width))
        values: dict[str, str] = {}
        for idx, name in enumerate(names):
            values[name] = cell_to_text(row[idx]) if idx < len(row) else ""
        records.append(Record(columns=tuple(names), values=values, row_index=i))

    kept, dropped = prune_empty_columns(names, records)
    if dropped:
        logger.debug(f"pruned empty columns: {dropped}")
        records = [r.project(kept) for r in records]
    return Materialized(columns=kept, records=records, pruned_columns=dropped, malformed_rows=malformed)
