from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Column metadata model.

ColumnMetadata describes an inferred column; it is derived once from the
final record set and never enforced against the data.
"""

__all__ = [
    "ColumnType",
    "ColumnMetadata",
    "HeaderRow",
]


class ColumnType(Enum):
    NUMERIC = "numeric"
    TEMPORAL = "temporal"
    BOOLEAN = "boolean"
    TEXTUAL = "textual"
    MIXED = "mixed"


@dataclass(frozen=True)
class HeaderRow:
    """Result of header discovery."""
    header_row_index: int  # 0-based index into the raw grid, -1 for empty grids
    names: tuple[str, ...]  # unique, non-empty

    def __len__(self) -> int:
        return len(self.names)


@dataclass(frozen=True)
class ColumnMetadata:
    name: str
    inferred_type: ColumnType
    nullable: bool  # at least one empty value in the column
    distinct_value_count: int  # distinct non-empty values

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "type": self.inferred_type.value,
            "nullable": self.nullable,
            "distinct_values": self.distinct_value_count,
        }
