from __future__ import annotations

import math
import re
import warnings
from collections.abc import Iterable
from datetime import date, datetime, time
from typing import Any

import numpy as np
import pandas as pd

"""Cell value helpers shared by the engine components.

Rendering rules for text coercion:
- None / NaN / NaT -> ""
- bool -> "true" / "false"
- integral floats -> no trailing ".0"
- midnight datetimes -> ISO date, other datetimes -> ISO "YYYY-MM-DD HH:MM:SS"
"""

__all__ = [
    "is_null",
    "is_blank",
    "is_header_blank",
    "cell_to_text",
    "is_native_boolean",
    "is_native_number",
    "is_boolean_literal",
    "parse_number",
    "parse_temporal",
    "strip_unit_suffix",
]

_THOUSANDS_RE = re.compile(r"[,\s]")
_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_HAS_DIGIT_RE = re.compile(r"\d")
_UNDEFINED = "undefined"


def _unwrap(value: Any) -> Any:
    # numpy scalar -> python scalar
    if isinstance(value, np.generic):
        return value.item()
    return value


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return value is pd.NaT


def is_native_boolean(value: Any) -> bool:
    return isinstance(value, (bool, np.bool_))


def is_native_number(value: Any) -> bool:
    if is_native_boolean(value):
        return False
    return isinstance(value, (int, float, np.integer, np.floating)) and not _is_missing(_unwrap(value))


def cell_to_text(value: Any) -> str:
    """Render a raw cell as trimmed text."""
    value = _unwrap(value)
    if _is_missing(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        if value.time() == time(0, 0) and value.tzinfo is None:
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def is_null(value: Any) -> bool:
    """True for None/NaN/NaT only; an empty string is an ordinary value."""
    return _is_missing(_unwrap(value))


def is_blank(value: Any) -> bool:
    """True for None/NaN and for text that is empty after trimming."""
    return cell_to_text(value) == ""


def is_header_blank(value: Any) -> bool:
    """Header variant of ``is_blank``: the literal "undefined" is also blank."""
    text = cell_to_text(value)
    return text == "" or text == _UNDEFINED


def is_boolean_literal(value: Any) -> bool:
    if is_native_boolean(value):
        return True
    return isinstance(value, str) and value.strip().lower() in ("true", "false")


def strip_unit_suffix(text: str, suffixes: Iterable[str]) -> str:
    lowered = text.lower()
    for suffix in suffixes:
        if suffix and lowered.endswith(suffix.lower()):
            return text[: -len(suffix)]
    return text


def parse_number(value: Any, unit_suffixes: Iterable[str] = ()) -> float | None:
    """Parse a cell as a finite number.

    Native numbers pass through. Text has thousands separators and whitespace
    removed, then one trailing unit suffix (case-insensitive) stripped; the
    remainder must be a plain decimal literal.
    """
    value = _unwrap(value)
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    if not isinstance(value, str):
        return None
    cleaned = _THOUSANDS_RE.sub("", value)
    cleaned = strip_unit_suffix(cleaned, unit_suffixes)
    if not cleaned or not _NUMBER_RE.match(cleaned):
        return None
    number = float(cleaned)
    return number if math.isfinite(number) else None


def parse_temporal(value: Any) -> datetime | None:
    """Parse a cell as a calendar date/time, None when it is not one.

    Text must contain at least one digit so words such as "now" or "today"
    are not taken as dates.
    """
    value = _unwrap(value)
    if _is_missing(value):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text or not _HAS_DIGIT_RE.search(text):
        return None
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", UserWarning)
        try:
            parsed = pd.to_datetime(text, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None
    if parsed is None or parsed is pd.NaT or pd.isna(parsed):
        return None
    return parsed.to_pydatetime()
