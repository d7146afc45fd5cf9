from __future__ import annotations

import logging
from dataclasses import dataclass

from ..models.config_models import EngineConfig
from ..models.errors import DecodeFailure

"""Encoding decoder: raw bytes -> text.

Two-attempt cascade, not a detector:
1. legacy CJK encoding (default cp949, the code page Korean spreadsheet
   exports are written in; plain euc-kr lacks most modern Hangul syllables)
2. universal fallback (utf-8)

A UTF-8 byte-order mark short-circuits step 1 because BOM bytes are valid
double-byte sequences in the legacy code page. A leading U+FEFF is stripped
from the decoded text either way.

When both attempts fail the fallback encoding is applied with replacement
characters and the failure is reported alongside the best-effort text.
"""

__all__ = [
    "DecodedText",
    "decode_bytes",
]

logger = logging.getLogger(__name__)

_UTF8_BOM = b"\xef\xbb\xbf"
_REPLACEMENT_CHAR = "\ufffd"


@dataclass(frozen=True)
class DecodedText:
    text: str
    encoding: str  # encoding that produced ``text``
    failure: DecodeFailure | None = None  # set when ``text`` is best-effort only


def _attempt(data: bytes, encoding: str) -> str | None:
    try:
        text = data.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        return None
    if _REPLACEMENT_CHAR in text:
        return None
    return text


def _strip_bom(text: str) -> str:
    return text[1:] if text.startswith("\ufeff") else text


def decode_bytes(data: bytes, config: EngineConfig | None = None) -> DecodedText:
    """Decode ``data`` with the legacy-then-universal cascade."""
    cfg = config or EngineConfig()
    if data.startswith(_UTF8_BOM):
        candidates = [cfg.fallback_encoding]
    else:
        candidates = [cfg.legacy_encoding, cfg.fallback_encoding]

    for encoding in candidates:
        text = _attempt(data, encoding)
        if text is not None:
            logger.debug(f"decoded {len(data)} bytes as {encoding}")
            return DecodedText(text=_strip_bom(text), encoding=encoding)

    failure = DecodeFailure(
        f"bytes could not be decoded as any of: {', '.join(candidates)}"
    )
    logger.warning(f"decode: {failure} -> best-effort {cfg.fallback_encoding} with replacement")
    try:
        text = data.decode(cfg.fallback_encoding, errors="replace")
        encoding = cfg.fallback_encoding
    except LookupError:
        text = data.decode("utf-8", errors="replace")
        encoding = "utf-8"
    return DecodedText(text=_strip_bom(text), encoding=encoding, failure=failure)
