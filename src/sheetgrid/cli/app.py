from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from sheetgrid.config.loader import ConfigError, resolve_config
from sheetgrid.logging.error_log import IssueLogBuffer
from sheetgrid.logging.init import enable_debug, log_summary, setup_logging
from sheetgrid.models.config_models import EngineConfig
from sheetgrid.models.outcome import ParseOutcome
from sheetgrid.query.operations import NumericRange, SortDirection, filter_records, sort_records
from sheetgrid.services.runner import ProcessingError, run_files
from sheetgrid.services.summary import render_summary_line
from sheetgrid.services.vehicles import project_vehicles

"""CLI entrypoint.

Flow:
- load .env (python-dotenv), resolve config
- ingest every given file (directories expand to their files)
- apply --filter / --range, then --sort, then --limit to each outcome
- print records as JSON lines (or a JSON document with --json)
- log the SUMMARY line and exit with 0 (all parsed), 2 (some failed), 1 (fatal)
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _parse_filter(text: str) -> tuple[str, str]:
    field, sep, value = text.partition("=")
    if not sep or not field:
        raise argparse.ArgumentTypeError(f"expected COLUMN=TEXT, got {text!r}")
    return field, value


def _parse_range(text: str) -> tuple[str, NumericRange]:
    field, sep, bounds = text.partition("=")
    low, colon, high = bounds.partition(":")
    if not sep or not field or not colon:
        raise argparse.ArgumentTypeError(f"expected COLUMN=MIN:MAX, got {text!r}")
    try:
        return field, NumericRange(
            min=float(low) if low.strip() else None,
            max=float(high) if high.strip() else None,
        )
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"range bounds must be numbers: {text!r}") from e


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="sheetgrid", description="Schema-less CSV / Excel table reader")
    p.add_argument("inputs", nargs="*", type=Path, help="CSV / XLSX / XLS files or directories")
    p.add_argument("--config", type=Path, default=None, help="YAML config (default: config/ingest.yml if present)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print columns & first rows instead of records")
    p.add_argument("--all-sheets", action="store_true", help="Read every sheet of a workbook")
    p.add_argument("--filter", dest="filters", action="append", type=_parse_filter, default=[],
                   metavar="COL=TEXT", help="Case-insensitive substring filter (repeatable)")
    p.add_argument("--range", dest="ranges", action="append", type=_parse_range, default=[],
                   metavar="COL=MIN:MAX", help="Inclusive numeric range filter (repeatable)")
    p.add_argument("--sort", default=None, metavar="COL", help="Sort by column")
    p.add_argument("--desc", action="store_true", help="Sort descending")
    p.add_argument("--limit", type=int, default=None, help="Print at most N records per file")
    p.add_argument("--json", action="store_true", help="Print each outcome as one JSON document")
    p.add_argument("--vehicles", action="store_true", help="Print vehicle listing statistics")
    p.add_argument("--issue-log", action="store_true", help="Write failures/issues to logs/issues-*.log")
    return p.parse_args(argv)


def _load_env_file(path: Path) -> None:
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _query(outcome: ParseOutcome, args: argparse.Namespace, cfg: EngineConfig) -> list[Any]:
    constraints: dict[str, Any] = {}
    for field, value in args.filters:
        constraints[field] = value
    for field, bounds in args.ranges:
        constraints[field] = bounds
    records = filter_records(outcome.records, constraints, cfg)
    if args.sort:
        direction = SortDirection.DESC if args.desc else SortDirection.ASC
        records = sort_records(records, args.sort, direction, cfg)
    if args.limit is not None:
        records = records[: max(args.limit, 0)]
    return records


def _print_inspect(outcome: ParseOutcome) -> None:
    src = outcome.source
    print(f"FILE: {src.original_name}" + (f" SHEET: {src.sheet_name}" if src.sheet_name else ""))
    if outcome.failure is not None:
        print(f"  error={outcome.failure.kind.value} {outcome.failure.message}")
        return
    print(f"  header_row={src.header_row_index} rows={src.row_count} encoding={src.encoding}")
    for col in outcome.columns:
        print(
            f"  COLUMN: {col.name} type={col.inferred_type.value} "
            f"nullable={col.nullable} distinct={col.distinct_value_count}"
        )
    print("  sample_rows=", json.dumps(outcome.to_dicts()[:3], ensure_ascii=False))


def _print_records(outcome: ParseOutcome, records: list[Any], as_json: bool) -> None:
    if as_json:
        body = outcome.to_dict()
        body["data"] = [r.to_dict() for r in records]
        body["total"] = len(records)
        print(json.dumps(body, ensure_ascii=False))
        return
    for r in records:
        print(json.dumps(r.to_dict(), ensure_ascii=False))


def _print_vehicles(outcome: ParseOutcome) -> None:
    listing = project_vehicles(outcome)
    if listing.failure is not None:
        print(f"vehicles: {listing.failure.message}")
        return
    stats = listing.stats
    print(
        f"vehicles={stats.total_vehicles} avg_price={stats.average_price} "
        f"avg_mileage={stats.average_mileage} years={stats.year_range[0]}-{stats.year_range[1]} "
        f"fuel={json.dumps(stats.fuel_types, ensure_ascii=False)}"
    )


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみ sys.argv を読む ([] はテストからの明示的な空引数)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        enable_debug()

    try:
        cfg = resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    issue_log = IssueLogBuffer() if args.issue_log else None
    try:
        result, outcomes = run_files(args.inputs, cfg, all_sheets=args.all_sheets, issue_log=issue_log)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    for outcome in outcomes:
        if args.inspect_data:
            _print_inspect(outcome)
            continue
        if not outcome.ok:
            continue
        _print_records(outcome, _query(outcome, args, cfg), args.json)
        if args.vehicles:
            _print_vehicles(outcome)

    if issue_log is not None:
        path = issue_log.flush()
        if path is not None:
            logger.info(f"issues written to {path}")

    summary_line = render_summary_line(result.total_files, result)
    # log_summary が "SUMMARY " を付与する
    log_summary(summary_line[len("SUMMARY "):])

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL
