"""
Typed tabular data: cells, rows, datasets, and summary records.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd


@dataclass(frozen=True)
class NumericCell:
    value: float


@dataclass(frozen=True)
class TextCell:
    value: str


@dataclass(frozen=True)
class MissingCell:
    """Null value from a query result. CSV uploads never produce it."""


Cell = Union[NumericCell, TextCell, MissingCell]
TypedRow = Mapping[str, Cell]

MISSING = MissingCell()


def cell_from_value(value: Any) -> Cell:
    """Tag a plain Python value coming from a JSON record."""
    if value is None:
        return MISSING
    if isinstance(value, bool):
        return TextCell(str(value).lower())
    if isinstance(value, (int, float)):
        return NumericCell(float(value))
    return TextCell(str(value))


def number_text(value: float) -> str:
    """Shortest lossless text for a number; integral values drop the trailing .0."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


def cell_to_value(cell: Cell) -> Any:
    if isinstance(cell, NumericCell):
        return cell.value
    if isinstance(cell, TextCell):
        return cell.value
    return None


@dataclass(frozen=True)
class Dataset:
    """Fully parsed, typed result of one upload. Immutable."""
    columns: Tuple[str, ...] = ()
    rows: Tuple[TypedRow, ...] = ()

    @classmethod
    def empty(cls) -> "Dataset":
        return cls()

    @classmethod
    def from_records(cls, records: Sequence[Mapping[str, Any]]) -> "Dataset":
        """Build a dataset from JSON records (e.g. a query result)."""
        columns: List[str] = []
        for record in records:
            for key in record:
                if key not in columns:
                    columns.append(key)
        rows = tuple(
            MappingProxyType({col: cell_from_value(record.get(col)) for col in columns})
            for record in records
        )
        return cls(columns=tuple(columns), rows=rows)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def __iter__(self) -> Iterator[TypedRow]:
        return iter(self.rows)

    def column_values(self, column: str) -> List[Cell]:
        if column not in self.columns:
            raise KeyError(f"Unknown column: {column}")
        return [row[column] for row in self.rows]

    def to_records(self) -> List[Dict[str, Any]]:
        return [{col: cell_to_value(row[col]) for col in self.columns} for row in self.rows]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.to_records(), columns=list(self.columns))


@dataclass(frozen=True)
class StructuredDirective:
    """Query + explanation embedded in assistant text."""
    query: str
    explanation: Optional[str] = None


@dataclass(frozen=True)
class NumericSummary:
    column: str
    min: float
    max: float
    mean: float
    sum: float
    count: int


@dataclass(frozen=True)
class CategoricalSummary:
    column: str
    top: Tuple[Tuple[str, int], ...]


@dataclass(frozen=True)
class HistogramBucket:
    range_label: str
    count: int
    lower: float
    upper: float


@dataclass(frozen=True)
class DatasetSummary:
    row_count: int
    column_count: int
    numeric: Dict[str, NumericSummary] = field(default_factory=dict)
    categorical: Dict[str, CategoricalSummary] = field(default_factory=dict)
