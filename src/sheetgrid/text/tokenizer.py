from __future__ import annotations

import csv
import io
import logging
import re

from ..models.config_models import BlankLinePolicy, EngineConfig
from ..models.record import RawGrid

"""Delimited-text tokenizer: decoded text -> RawGrid.

Two normalizations always run before tokenizing:
- a blank (or delimiter-only) first physical line is dropped; spreadsheet
  exports often lead with one
- trailing runs of bare delimiters are removed from every line so that no
  spurious empty trailing columns appear

Fields follow standard CSV quoting (double quotes, doubled to escape), so
quoted fields may hold commas and newlines.
"""

__all__ = [
    "DELIMITER",
    "preprocess_text",
    "tokenize",
]

logger = logging.getLogger(__name__)

DELIMITER = ","
_BLANK_OR_DELIMITERS_RE = re.compile(r"^[,\s]*$")
_TRAILING_DELIMITERS_RE = re.compile(r",+\s*$")


def preprocess_text(text: str) -> str:
    """Apply the lead-in line and trailing delimiter normalizations."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = text.split("\n")
    if lines and _BLANK_OR_DELIMITERS_RE.match(lines[0]):
        lines = lines[1:]
    return "\n".join(_TRAILING_DELIMITERS_RE.sub("", line) for line in lines)


def _is_blank_row(row: list[str], policy: BlankLinePolicy) -> bool:
    if policy is BlankLinePolicy.KEEP:
        return False
    if not row:
        return True
    if policy is BlankLinePolicy.GREEDY:
        return all(field.strip() == "" for field in row)
    return False


def tokenize(text: str, config: EngineConfig | None = None) -> RawGrid:
    """Split decoded text into rows of string fields."""
    cfg = config or EngineConfig()
    content = preprocess_text(text)
    reader = csv.reader(
        io.StringIO(content),
        delimiter=DELIMITER,
        quotechar='"',
        doublequote=True,
        skipinitialspace=False,
        strict=False,
    )
    grid: RawGrid = []
    skipped = 0
    for row in reader:
        if _is_blank_row(row, cfg.blank_line_policy):
            skipped += 1
            continue
        grid.append(list(row))
    logger.debug(f"tokenized {len(grid)} rows (skipped blank={skipped})")
    return grid
