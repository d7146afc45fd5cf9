"""Domain models for the sheetgrid tabular ingestion engine.

This package contains the value types shared by the engine components,
the ingestion service and the query operations.
"""

from .column import ColumnMetadata, ColumnType, HeaderRow
from .config_models import BlankLinePolicy, EngineConfig, NullPlacement
from .errors import FailureKind, IngestFailure
from .issue_record import IssueRecord
from .outcome import ParseOutcome, SourceDescriptor
from .record import Cell, RawGrid, Record, ValueKind, Variant
from .run_result import FileStat, RunResult

__all__ = [
    # Configuration models
    "BlankLinePolicy",
    "EngineConfig",
    "NullPlacement",
    # Header / column models
    "ColumnMetadata",
    "ColumnType",
    "HeaderRow",
    # Row models
    "Cell",
    "RawGrid",
    "Record",
    "ValueKind",
    "Variant",
    # Outcome models
    "FailureKind",
    "IngestFailure",
    "ParseOutcome",
    "SourceDescriptor",
    # Run / issue log models
    "FileStat",
    "IssueRecord",
    "RunResult",
]
