"""
Delimited text parser: raw CSV upload -> typed Dataset, plus raw-data re-export.
"""

import io
import logging
import math
import re
import time
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Set

import pandas as pd

from insightstream.core.models import Dataset, NumericCell, TextCell, cell_to_value, number_text

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")
_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _clean(value: str) -> str:
    """Trim and drop surrounding quote characters."""
    return value.strip().strip('"').strip()


def parse_number(text: str):
    """Return the float value if the whole string is a finite decimal number, else None."""
    if not text or not _NUMBER.fullmatch(text):
        return None
    value = float(text)
    return value if math.isfinite(value) else None


class _HeaderNormalizer:
    """Keeps column names unique and non-empty so every row has the full key set."""

    def __init__(self) -> None:
        self._counts: Dict[str, int] = {}
        self._used: Set[str] = set()

    def _allocate(self, base: str) -> str:
        count = self._counts.get(base, 0)
        candidate = base if count == 0 else f"{base}_{count + 1}"
        while candidate in self._used:
            count += 1
            candidate = f"{base}_{count + 1}"
        self._counts[base] = count + 1
        self._used.add(candidate)
        return candidate

    def normalize(self, names: List[str]) -> List[str]:
        return [self._allocate(name or f"column_{index + 1}") for index, name in enumerate(names)]


class TabularParser:
    """Parse comma-separated uploads into typed rows.

    Quoted fields are not respected as escapes: a comma inside quotes still
    splits the cell, and quotes are only stripped from the cell edges.
    """

    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter
        self.supported_formats = ["csv"]

    def parse(self, file_path: str) -> Dataset:
        """Read an uploaded file from disk and parse it."""
        file_path = Path(file_path)
        ext = file_path.suffix.lower().lstrip(".")

        if ext not in self.supported_formats:
            raise ValueError(f"Unsupported format: {ext}")

        text = file_path.read_text(encoding="utf-8-sig")
        dataset = self.parse_text(text)
        logger.info(f"Loaded {dataset.row_count} rows from {file_path.name}")
        return dataset

    def parse_text(self, text: str) -> Dataset:
        """Parse the full upload text. Fewer than two lines yields an empty dataset."""
        lines = _LINE_BREAK.split(text.lstrip("\ufeff").strip())
        if len(lines) < 2:
            logger.debug("Upload has no data rows")
            return Dataset.empty()

        headers = _HeaderNormalizer().normalize(
            [_clean(name) for name in lines[0].split(self.delimiter)]
        )

        rows = []
        for line in lines[1:]:
            values = line.split(self.delimiter)
            row = {}
            for index, header in enumerate(headers):
                value = _clean(values[index]) if index < len(values) else ""
                number = parse_number(value)
                row[header] = NumericCell(number) if number is not None else TextCell(value)
            rows.append(MappingProxyType(row))

        return Dataset(columns=tuple(headers), rows=tuple(rows))


def export_csv(dataset: Dataset) -> str:
    """Serialize a dataset back to CSV text for download."""
    if dataset.is_empty:
        return ""
    records = [
        {
            col: number_text(cell.value) if isinstance(cell, NumericCell) else cell_to_value(cell)
            for col, cell in row.items()
        }
        for row in dataset.rows
    ]
    buffer = io.StringIO()
    frame = pd.DataFrame(records, columns=list(dataset.columns), dtype=object)
    frame.to_csv(buffer, index=False, lineterminator="\n")
    return buffer.getvalue().rstrip("\n")


def export_filename() -> str:
    return f"data-export-{int(time.time() * 1000)}.csv"
