from __future__ import annotations

import logging
from pathlib import Path

from ..engine.header import discover_header
from ..engine.inference import analyze_columns, coerce_variant
from ..engine.materialize import materialize_rows
from ..excel.reader import extract_all_sheets, extract_first_sheet
from ..models.config_models import EngineConfig
from ..models.errors import EmptySource, FailureKind, IngestFailure, UnsupportedFormat
from ..models.outcome import ParseOutcome, SourceDescriptor
from ..models.record import RawGrid, Variant
from ..text.decoder import decode_bytes
from ..text.tokenizer import tokenize

"""Ingestion entry points.

bytes -> (tokenizer | spreadsheet extractor) -> raw grid -> header discovery
-> row materialization -> column type inference -> ParseOutcome

Dispatch is by file extension: ``.csv`` takes the delimited-text path,
``.xlsx`` / ``.xls`` the spreadsheet path; anything else yields an
UNSUPPORTED_FORMAT outcome. No entry point raises: every failure is
reported through ``ParseOutcome.failure``.
"""

__all__ = [
    "TEXT_FORMATS",
    "SPREADSHEET_FORMATS",
    "SUPPORTED_FORMATS",
    "detect_format",
    "build_outcome",
    "ingest_bytes",
    "ingest_path",
    "ingest_all_sheets",
    "project_typed",
]

logger = logging.getLogger(__name__)

TEXT_FORMATS = frozenset({"csv"})
SPREADSHEET_FORMATS = frozenset({"xlsx", "xls"})
SUPPORTED_FORMATS = TEXT_FORMATS | SPREADSHEET_FORMATS


def detect_format(file_name: str) -> str:
    """Lower-case extension of ``file_name`` ("" when there is none)."""
    name = Path(file_name).name
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def build_outcome(
    grid: RawGrid,
    *,
    original_name: str,
    detected_format: str,
    sheet_name: str | None = None,
    encoding: str | None = None,
    issues: list[IngestFailure] | None = None,
    config: EngineConfig | None = None,
) -> ParseOutcome:
    """Run header discovery, materialization and inference over ``grid``."""
    cfg = config or EngineConfig()
    collected = list(issues or [])
    if not grid:
        source = SourceDescriptor(
            original_name=original_name,
            detected_format=detected_format,
            sheet_name=sheet_name,
            encoding=encoding,
        )
        return ParseOutcome.failed(source, EmptySource("no rows found in source").to_failure(), collected)

    header = discover_header(grid, cfg)
    materialized = materialize_rows(grid, header, skip_empty_rows=cfg.skip_empty_rows)
    collected.extend(m.to_failure() for m in materialized.malformed_rows)
    columns = analyze_columns(materialized.records, materialized.columns, cfg)
    source = SourceDescriptor(
        original_name=original_name,
        detected_format=detected_format,
        row_count=len(materialized.records),
        column_count=len(columns),
        sheet_name=sheet_name,
        header_row_index=header.header_row_index,
        total_raw_rows=len(grid),
        encoding=encoding,
    )
    logger.debug(
        f"{original_name}: header_row={header.header_row_index} "
        f"rows={source.row_count} columns={source.column_count}"
    )
    return ParseOutcome(records=materialized.records, columns=columns, source=source, issues=collected)


def _ingest_text(file_name: str, fmt: str, data: bytes, cfg: EngineConfig) -> ParseOutcome:
    decoded = decode_bytes(data, cfg)
    issues = [decoded.failure.to_failure()] if decoded.failure is not None else []
    grid = tokenize(decoded.text, cfg)
    return build_outcome(
        grid,
        original_name=file_name,
        detected_format=fmt,
        encoding=decoded.encoding,
        issues=issues,
        config=cfg,
    )


def _ingest_spreadsheet(file_name: str, fmt: str, data: bytes, cfg: EngineConfig) -> ParseOutcome:
    sheet = extract_first_sheet(data)
    return build_outcome(
        sheet.grid,
        original_name=file_name,
        detected_format=fmt,
        sheet_name=sheet.sheet_name,
        config=cfg,
    )


def _unsupported(file_name: str, fmt: str) -> ParseOutcome:
    err = UnsupportedFormat(
        f"unsupported file type '{fmt or '(none)'}'; expected one of {sorted(SUPPORTED_FORMATS)}"
    )
    logger.warning(f"{file_name}: {err}")
    return ParseOutcome.failed(SourceDescriptor(original_name=file_name, detected_format=fmt), err.to_failure())


def ingest_bytes(file_name: str, data: bytes, config: EngineConfig | None = None) -> ParseOutcome:
    """Parse a buffered file into a ParseOutcome (never raises)."""
    cfg = config or EngineConfig()
    fmt = detect_format(file_name)
    if fmt not in SUPPORTED_FORMATS:
        return _unsupported(file_name, fmt)
    try:
        if fmt in TEXT_FORMATS:
            return _ingest_text(file_name, fmt, data, cfg)
        return _ingest_spreadsheet(file_name, fmt, data, cfg)
    except EmptySource as e:
        return ParseOutcome.failed(SourceDescriptor(original_name=file_name, detected_format=fmt), e.to_failure())
    except Exception as e:
        logger.error(f"{file_name}: parse failed: {e}")
        failure = IngestFailure(kind=FailureKind.PARSE_ERROR, message=str(e) or type(e).__name__)
        return ParseOutcome.failed(SourceDescriptor(original_name=file_name, detected_format=fmt), failure)


def ingest_path(path: Path | str, config: EngineConfig | None = None) -> ParseOutcome:
    """Read ``path`` and ingest its bytes; read errors become a READ_ERROR outcome."""
    p = Path(path)
    try:
        data = p.read_bytes()
    except OSError as e:
        logger.error(f"{p}: read failed: {e}")
        failure = IngestFailure(kind=FailureKind.READ_ERROR, message=str(e))
        return ParseOutcome.failed(SourceDescriptor(original_name=p.name, detected_format=detect_format(p.name)), failure)
    return ingest_bytes(p.name, data, config)


def ingest_all_sheets(file_name: str, data: bytes, config: EngineConfig | None = None) -> list[ParseOutcome]:
    """One outcome per workbook sheet; csv input yields a single outcome."""
    cfg = config or EngineConfig()
    fmt = detect_format(file_name)
    if fmt not in SPREADSHEET_FORMATS:
        return [ingest_bytes(file_name, data, cfg)]
    try:
        sheets = extract_all_sheets(data)
    except EmptySource as e:
        return [ParseOutcome.failed(SourceDescriptor(original_name=file_name, detected_format=fmt), e.to_failure())]
    except Exception as e:
        logger.error(f"{file_name}: parse failed: {e}")
        failure = IngestFailure(kind=FailureKind.PARSE_ERROR, message=str(e) or type(e).__name__)
        return [ParseOutcome.failed(SourceDescriptor(original_name=file_name, detected_format=fmt), failure)]
    return [
        build_outcome(
            sheet.grid,
            original_name=file_name,
            detected_format=fmt,
            sheet_name=sheet.sheet_name,
            config=cfg,
        )
        for sheet in sheets
    ]


def project_typed(outcome: ParseOutcome, config: EngineConfig | None = None) -> list[dict[str, Variant]]:
    """Typed projection: every value as a Variant guided by its column type."""
    types = {c.name: c.inferred_type for c in outcome.columns}
    rows: list[dict[str, Variant]] = []
    for record in outcome.records:
        row: dict[str, Variant] = {}
        for name, value in record.items():
            row[name] = coerce_variant(value, types[name], config)
        rows.append(row)
    return rows

