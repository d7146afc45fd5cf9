"""sheetgrid: schema-less ingestion of CSV and Excel tables.

Typical use::

    from sheetgrid import ingest_bytes, filter_records, sort_records

    outcome = ingest_bytes("listing.csv", data)
    rows = sort_records(filter_records(outcome.records, {"차량명": "그랜저"}), "출품가", "desc")
"""

from sheetgrid.models import ColumnMetadata, ColumnType, EngineConfig, ParseOutcome, Record
from sheetgrid.query.operations import NumericRange, SortDirection, filter_records, sort_records
from sheetgrid.services.ingest import ingest_all_sheets, ingest_bytes, ingest_path, project_typed

__version__ = "0.1.0"

__all__ = [
    "ColumnMetadata",
    "ColumnType",
    "EngineConfig",
    "NumericRange",
    "ParseOutcome",
    "Record",
    "SortDirection",
    "filter_records",
    "ingest_all_sheets",
    "ingest_bytes",
    "ingest_path",
    "project_typed",
    "sort_records",
]
