from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

"""Engine configuration dataclasses.

All tunables of the ingestion engine live in ``EngineConfig``. The loader in
``sheetgrid.config.loader`` builds one from YAML; callers may also construct
it directly or derive a variant with ``EngineConfig.with_overrides``.
"""

__all__ = [
    "BlankLinePolicy",
    "NullPlacement",
    "EngineConfig",
    "DEFAULT_DISTANCE_FIELD_PATTERNS",
    "DEFAULT_NUMERIC_UNIT_SUFFIXES",
]

DEFAULT_DISTANCE_FIELD_PATTERNS: tuple[str, ...] = ("주행거리", "mileage", "distance", "odometer")
# 長いものから順に除去する (만원 before 원)
DEFAULT_NUMERIC_UNIT_SUFFIXES: tuple[str, ...] = ("만원", "원", "km")


class BlankLinePolicy(Enum):
    """How the tokenizer treats blank lines.

    - KEEP: every line becomes a row, blank ones included
    - SKIP: lines with no content at all are skipped
    - GREEDY: lines holding only whitespace/empty fields are skipped too
    """
    KEEP = "keep"
    SKIP = "skip"
    GREEDY = "greedy"


class NullPlacement(Enum):
    """Where empty values go when sorting.

    LAST keeps nulls at the end for both directions; FIRST puts them at the
    start for both directions.
    """
    LAST = "last"
    FIRST = "first"


@dataclass(frozen=True)
class EngineConfig:
    """Tunables for header discovery, decoding, inference and sorting."""
    min_header_columns: int = 2  # non-empty cells required for a header row
    max_header_search_rows: int = 20  # rows scanned for the header
    fallback_column_prefix: str = "Column"
    skip_empty_rows: bool = True
    blank_line_policy: BlankLinePolicy = BlankLinePolicy.GREEDY
    legacy_encoding: str = "cp949"  # tried first; euc-kr superset (UHC)
    fallback_encoding: str = "utf-8"
    type_threshold: float = 0.8  # majority share for column type inference
    dedupe_headers: bool = True  # rename repeated header text
    null_placement: NullPlacement = NullPlacement.LAST
    blank_as_null: bool = False  # sort "" cells like None
    distance_field_patterns: tuple[str, ...] = field(default=DEFAULT_DISTANCE_FIELD_PATTERNS)
    numeric_unit_suffixes: tuple[str, ...] = field(default=DEFAULT_NUMERIC_UNIT_SUFFIXES)

    def with_overrides(self, **changes: object) -> EngineConfig:
        return replace(self, **changes)  # type: ignore[arg-type]
