from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Union

"""Record and cell value models.

A ``Record`` is one materialized data row: an ordered column tuple plus a
read-only mapping from column name to value. It behaves as a ``Mapping`` so
the query operations accept records and plain dicts alike.

``Variant`` is the tagged cell value used by the typed projection.
"""

__all__ = [
    "Cell",
    "RawGrid",
    "Record",
    "ValueKind",
    "Variant",
]

# Raw cell as produced by the tokenizer / spreadsheet extractor
Cell = Union[str, int, float, bool, datetime, date, None]
RawGrid = list[list[Cell]]


class ValueKind(Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    TEMPORAL = "temporal"
    EMPTY = "empty"


@dataclass(frozen=True)
class Variant:
    """Tagged cell value (text | number | boolean | temporal | empty)."""
    kind: ValueKind
    value: Any = None

    @classmethod
    def empty(cls) -> Variant:
        return cls(ValueKind.EMPTY, None)

    @classmethod
    def text(cls, value: str) -> Variant:
        return cls(ValueKind.TEXT, value)

    @classmethod
    def number(cls, value: int | float) -> Variant:
        return cls(ValueKind.NUMBER, value)

    @classmethod
    def boolean(cls, value: bool) -> Variant:
        return cls(ValueKind.BOOLEAN, value)

    @classmethod
    def temporal(cls, value: datetime | date) -> Variant:
        return cls(ValueKind.TEMPORAL, value)

    @property
    def is_empty(self) -> bool:
        return self.kind is ValueKind.EMPTY

    def to_json(self) -> Any:
        if self.kind is ValueKind.TEMPORAL:
            return self.value.isoformat()
        return self.value


@dataclass(frozen=True)
class Record(Mapping[str, Any]):
    """One materialized row; key set always equals ``columns``."""
    columns: tuple[str, ...]
    values: Mapping[str, Any]
    row_index: int = field(default=-1, compare=False)  # raw grid row (0-based)

    def __post_init__(self) -> None:
        # 列集合と値のキーを揃える (欠落は空文字)
        normalized = {c: self.values.get(c, "") for c in self.columns}
        object.__setattr__(self, "columns", tuple(self.columns))
        object.__setattr__(self, "values", MappingProxyType(normalized))

    def __getitem__(self, key: str) -> Any:
        return self.values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def project(self, columns: tuple[str, ...] | list[str]) -> Record:
        """Return a new record restricted to ``columns`` (in that order)."""
        return Record(
            columns=tuple(columns),
            values={c: self.values.get(c, "") for c in columns},
            row_index=self.row_index,
        )

    def to_dict(self) -> dict[str, Any]:
        return {c: self.values[c] for c in self.columns}
