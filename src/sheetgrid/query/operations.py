from __future__ import annotations

import functools
import logging
import re
import unicodedata
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from ..engine.values import (
    cell_to_text,
    is_blank,
    is_boolean_literal,
    is_native_number,
    is_null,
    parse_number,
)
from ..models.config_models import EngineConfig, NullPlacement

"""Record query operations: filter and sort.

Both operations are pure: they never mutate the input sequence or its
records and always return a new list.

Filter constraints (combined with AND; None / "" constraints are ignored):
- text          -> case-insensitive substring match on the value's text
- number        -> numeric equality after coercing the value
- NumericRange  -> inclusive range; values that are not numbers fail
  (a ``{"min": .., "max": ..}`` mapping is accepted as a range too)

Sort compares by runtime value shape:
- distance-like fields (name matches a configured pattern) compare the
  number left after removing separators and a "km" unit
- two native numbers, or two digit strings (thousands separators allowed),
  compare numerically
- everything else compares as text with a Hangul-aware collation key
Null values (None or NaN) are placed by ``null_placement`` independently of
the direction. An empty string is an ordinary value (it sorts first when
ascending) unless ``blank_as_null`` is set. Sorting is stable.
"""

__all__ = [
    "NumericRange",
    "SortDirection",
    "filter_records",
    "matches_constraint",
    "is_distance_field",
    "parse_distance",
    "collation_key",
    "compare_values",
    "sort_records",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")
Getter = Callable[[Any, str], Any]

_DIGITS_RE = re.compile(r"^\d+$")
_DISTANCE_UNIT_RE = re.compile(r"km$", re.IGNORECASE)


@dataclass(frozen=True)
class NumericRange:
    """Inclusive numeric range; a None bound is open."""
    min: float | None = None
    max: float | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> NumericRange:
        return cls(min=parse_number(data.get("min")), max=parse_number(data.get("max")))

    def contains(self, number: float) -> bool:
        if self.min is not None and number < self.min:
            return False
        if self.max is not None and number > self.max:
            return False
        return True


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, token: str | SortDirection | None) -> SortDirection:
        if isinstance(token, SortDirection):
            return token
        if token is None:
            return cls.ASC
        try:
            return cls(str(token).strip().lower())
        except ValueError:
            logger.warning(f"unknown sort direction {token!r} -> asc")
            return cls.ASC


def _mapping_getter(record: Any, field: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(field)
    return getattr(record, field, None)


def _is_range(constraint: Any) -> bool:
    if isinstance(constraint, NumericRange):
        return True
    return isinstance(constraint, Mapping) and ("min" in constraint or "max" in constraint)


def _is_inactive(constraint: Any) -> bool:
    return constraint is None or (isinstance(constraint, str) and constraint == "")


def matches_constraint(value: Any, constraint: Any, config: EngineConfig | None = None) -> bool:
    """Evaluate a single field constraint against a value."""
    cfg = config or EngineConfig()
    if _is_inactive(constraint):
        return True
    if isinstance(constraint, str):
        return constraint.casefold() in cell_to_text(value).casefold()
    if isinstance(constraint, bool):
        if not is_boolean_literal(value):
            return False
        return cell_to_text(value).lower() == ("true" if constraint else "false")
    if is_native_number(constraint):
        number = parse_number(value, cfg.numeric_unit_suffixes)
        return number is not None and number == float(constraint)
    if _is_range(constraint):
        bounds = constraint if isinstance(constraint, NumericRange) else NumericRange.from_mapping(constraint)
        number = parse_number(value, cfg.numeric_unit_suffixes)
        # 数値化できない値は範囲外扱い
        return number is not None and bounds.contains(number)
    logger.warning(f"unsupported constraint {constraint!r} ignored")
    return True


def filter_records(
    records: Sequence[T],
    constraints: Mapping[str, Any],
    config: EngineConfig | None = None,
    getter: Getter | None = None,
) -> list[T]:
    """Records satisfying every active constraint, in input order."""
    get = getter or _mapping_getter
    active = {f: c for f, c in constraints.items() if not _is_inactive(c)}
    if not active:
        return list(records)
    return [
        r for r in records
        if all(matches_constraint(get(r, f), c, config) for f, c in active.items())
    ]


def is_distance_field(field: str, config: EngineConfig | None = None) -> bool:
    cfg = config or EngineConfig()
    folded = field.casefold()
    return any(p.casefold() in folded for p in cfg.distance_field_patterns)


def parse_distance(value: Any) -> float:
    """Distance value of e.g. "43,437 Km" (43437.0); unparseable values count as 0."""
    if is_native_number(value):
        return float(value)
    text = re.sub(r"[,\s]", "", cell_to_text(value))
    text = _DISTANCE_UNIT_RE.sub("", text)
    number = parse_number(text)
    return number if number is not None else 0.0


def collation_key(text: str) -> tuple[str, str]:
    """Text ordering key: case-insensitive first, original text as tie-break.

    Precomposed Hangul syllables are laid out in dictionary order, so NFC
    normalization followed by code point comparison orders Hangul syllables
    among themselves the way a ko-KR collator does. Known differences from an
    ICU ko-KR collator:

    - case ties put "A" before "a" (ICU: lowercase first)
    - punctuation follows code points, so "{|}~" sort after digits and letters
      (ICU: punctuation before digits)
    - Latin text sorts before Hangul (the ko tailoring puts Hangul first)
    """
    normalized = unicodedata.normalize("NFC", text)
    return (normalized.casefold(), normalized)


def _sign(x: float) -> int:
    return (x > 0) - (x < 0)


def compare_values(a: Any, b: Any, field: str = "", config: EngineConfig | None = None) -> int:
    """Compare two non-null values (negative, zero, positive)."""
    if is_distance_field(field, config):
        return _sign(parse_distance(a) - parse_distance(b))
    if is_native_number(a) and is_native_number(b):
        return _sign(float(a) - float(b))
    a_text = cell_to_text(a)
    b_text = cell_to_text(b)
    a_digits = a_text.replace(",", "")
    b_digits = b_text.replace(",", "")
    if _DIGITS_RE.match(a_digits) and _DIGITS_RE.match(b_digits):
        return _sign(int(a_digits) - int(b_digits))
    a_key = collation_key(a_text)
    b_key = collation_key(b_text)
    return (a_key > b_key) - (a_key < b_key)


def sort_records(
    records: Sequence[T],
    field: str,
    direction: str | SortDirection | None = SortDirection.ASC,
    config: EngineConfig | None = None,
    getter: Getter | None = None,
) -> list[T]:
    """Stable, non-mutating sort of ``records`` by ``field``."""
    cfg = config or EngineConfig()
    get = getter or _mapping_getter
    descending = SortDirection.parse(direction) is SortDirection.DESC
    nulls_last = cfg.null_placement is NullPlacement.LAST
    is_null_value = is_blank if cfg.blank_as_null else is_null

    def _cmp(left: T, right: T) -> int:
        a = get(left, field)
        b = get(right, field)
        a_null = is_null_value(a)
        b_null = is_null_value(b)
        if a_null and b_null:
            return 0
        if a_null:
            return 1 if nulls_last else -1
        if b_null:
            return -1 if nulls_last else 1
        result = compare_values(a, b, field, cfg)
        return -result if descending else result

    return sorted(records, key=functools.cmp_to_key(_cmp))
