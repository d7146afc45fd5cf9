from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ..models.column import ColumnMetadata, ColumnType
from ..models.config_models import EngineConfig
from ..models.record import ValueKind, Variant
from .values import (
    cell_to_text,
    is_blank,
    is_boolean_literal,
    is_native_boolean,
    parse_number,
    parse_temporal,
)

"""Column type inferencer.

Each non-empty value is classified, in this order:
1. boolean  - native bool or "true"/"false" (any case)
2. numeric  - native number, or text that parses as a finite number after
              removing thousands separators, whitespace and a unit suffix
3. temporal - a valid calendar date/time
4. textual  - anything else

A category holding at least ``type_threshold`` (0.8) of the non-empty values
names the column type; otherwise the column is ``mixed``. An all-empty
column is ``textual``.
"""

__all__ = [
    "classify_value",
    "infer_column_type",
    "analyze_column",
    "analyze_columns",
    "coerce_variant",
]

logger = logging.getLogger(__name__)

# 判定順 (同率は起こり得ないが順序を固定)
_TYPE_ORDER = (ColumnType.NUMERIC, ColumnType.TEMPORAL, ColumnType.BOOLEAN, ColumnType.TEXTUAL)
_LEADING_ZERO_RE = re.compile(r"^0\d")


def classify_value(value: Any, unit_suffixes: Iterable[str] = ()) -> ColumnType:
    """Category of a single non-empty value."""
    if is_boolean_literal(value):
        return ColumnType.BOOLEAN
    if parse_number(value, unit_suffixes) is not None:
        return ColumnType.NUMERIC
    if parse_temporal(value) is not None:
        return ColumnType.TEMPORAL
    return ColumnType.TEXTUAL


def infer_column_type(values: Sequence[Any], config: EngineConfig | None = None) -> ColumnType:
    cfg = config or EngineConfig()
    non_empty = [v for v in values if not is_blank(v)]
    if not non_empty:
        return ColumnType.TEXTUAL
    tally = Counter(classify_value(v, cfg.numeric_unit_suffixes) for v in non_empty)
    total = len(non_empty)
    for column_type in _TYPE_ORDER:
        if tally[column_type] / total >= cfg.type_threshold:
            return column_type
    return ColumnType.MIXED


def analyze_column(
    records: Sequence[Mapping[str, Any]], name: str, config: EngineConfig | None = None
) -> ColumnMetadata:
    values = [r.get(name) for r in records]
    non_empty = [v for v in values if not is_blank(v)]
    return ColumnMetadata(
        name=name,
        inferred_type=infer_column_type(values, config),
        nullable=len(non_empty) < len(values),
        distinct_value_count=len({cell_to_text(v) for v in non_empty}),
    )


def analyze_columns(
    records: Sequence[Mapping[str, Any]], columns: Sequence[str], config: EngineConfig | None = None
) -> list[ColumnMetadata]:
    metadata = [analyze_column(records, name, config) for name in columns]
    logger.debug(
        "column types: " + ", ".join(f"{m.name}={m.inferred_type.value}" for m in metadata)
    )
    return metadata


def coerce_variant(value: Any, column_type: ColumnType, config: EngineConfig | None = None) -> Variant:
    """Convert a cell to a ``Variant`` guided by its column's inferred type.

    Values that do not fit the column type (the minority of a column that
    still passed the threshold, or any value of a mixed column) keep their
    own classification.
    """
    cfg = config or EngineConfig()
    if is_blank(value):
        return Variant.empty()
    kind = classify_value(value, cfg.numeric_unit_suffixes)
    if column_type is ColumnType.TEXTUAL:
        kind = ColumnType.TEXTUAL
    if kind is ColumnType.BOOLEAN:
        if is_native_boolean(value):
            return Variant.boolean(bool(value))
        return Variant.boolean(str(value).strip().lower() == "true")
    if kind is ColumnType.NUMERIC:
        text = cell_to_text(value)
        if isinstance(value, str) and _LEADING_ZERO_RE.match(text):
            # "0001" のような識別子は数値化しない
            return Variant.text(text)
        number = parse_number(value, cfg.numeric_unit_suffixes)
        if number is None:
            return Variant.text(text)
        return Variant.number(int(number) if number.is_integer() else number)
    if kind is ColumnType.TEMPORAL:
        return Variant(ValueKind.TEMPORAL, parse_temporal(value))
    return Variant.text(cell_to_text(value))
