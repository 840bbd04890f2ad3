"""
Column-wise aggregates, histograms and category counts over a Dataset.

Everything here is a pure function of its inputs.
"""

from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from insightstream.core.models import (
    CategoricalSummary,
    Dataset,
    DatasetSummary,
    HistogramBucket,
    MissingCell,
    NumericCell,
    NumericSummary,
    TextCell,
    number_text,
)

UNKNOWN = "Unknown"


def _numeric_values(dataset: Dataset, column: str) -> List[float]:
    return [cell.value for cell in dataset.column_values(column) if isinstance(cell, NumericCell)]


def numeric_columns(dataset: Dataset) -> List[str]:
    """Columns with at least one numeric cell, in header order."""
    return [
        col for col in dataset.columns
        if any(isinstance(row[col], NumericCell) for row in dataset.rows)
    ]


def categorical_columns(dataset: Dataset) -> List[str]:
    """Columns with at least one text cell, in header order."""
    return [
        col for col in dataset.columns
        if any(isinstance(row[col], TextCell) for row in dataset.rows)
    ]


def numeric_summary(dataset: Dataset, column: str) -> Optional[NumericSummary]:
    """min/max/mean/sum over the numeric cells only; None when there are none."""
    series = pd.Series(_numeric_values(dataset, column), dtype="float64")
    if series.empty:
        return None
    return NumericSummary(
        column=column,
        min=float(series.min()),
        max=float(series.max()),
        mean=float(series.sum() / series.count()),
        sum=float(series.sum()),
        count=int(series.count()),
    )


def _format_edge(value: float) -> str:
    if float(value).is_integer():
        return f"{value:.0f}"
    return f"{value:.2f}"


def histogram(dataset: Dataset, column: str, bucket_count: int = 5) -> List[HistogramBucket]:
    """Fixed-width buckets over [min, max]; the last bucket includes max."""
    values = _numeric_values(dataset, column)
    if not values:
        return []

    low, high = min(values), max(values)
    span = high - low
    offsets = np.asarray(values) - low

    # Scale before dividing so a value on an edge lands in the bucket that edge opens
    if span:
        positions = offsets * bucket_count / span
        edges = [low + span * i / bucket_count for i in range(bucket_count)] + [high]
    else:
        positions = offsets
        edges = [low + i for i in range(bucket_count + 1)]

    indices = np.clip(np.floor(positions).astype(int), 0, bucket_count - 1)
    counts = np.bincount(indices, minlength=bucket_count)

    buckets = []
    for i in range(bucket_count):
        lower, upper = edges[i], edges[i + 1]
        buckets.append(
            HistogramBucket(
                range_label=f"{_format_edge(lower)}-{_format_edge(upper)}",
                count=int(counts[i]),
                lower=lower,
                upper=upper,
            )
        )
    return buckets


def _category_key(cell) -> str:
    if isinstance(cell, MissingCell):
        return UNKNOWN
    if isinstance(cell, NumericCell):
        return number_text(cell.value)
    return cell.value


def category_counts(dataset: Dataset, column: str, top_n: int = 5) -> List[Tuple[str, int]]:
    """Most frequent values, descending; ties keep first-seen order."""
    counter = Counter(_category_key(cell) for cell in dataset.column_values(column))
    return counter.most_common(top_n)


def summarize(dataset: Dataset, top_n: int = 5) -> DatasetSummary:
    numeric: Dict[str, NumericSummary] = {}
    for col in numeric_columns(dataset):
        stats = numeric_summary(dataset, col)
        if stats is not None:
            numeric[col] = stats

    categorical = {
        col: CategoricalSummary(column=col, top=tuple(category_counts(dataset, col, top_n)))
        for col in categorical_columns(dataset)
    }

    return DatasetSummary(
        row_count=dataset.row_count,
        column_count=len(dataset.columns),
        numeric=numeric,
        categorical=categorical,
    )


def headline_metrics(dataset: Dataset) -> List[Tuple[str, str]]:
    """Dashboard cards: total records, active count, column count, first numeric total."""
    if dataset.is_empty:
        return [("Total Records", "-"), ("Active Count", "-"), ("Columns", "-"), ("Sum", "-")]

    status_col = next((c for c in dataset.columns if "status" in c.lower()), None)
    numeric_cols = numeric_columns(dataset)
    numeric_col = numeric_cols[0] if numeric_cols else None

    metrics = [("Total Records", f"{dataset.row_count:,}")]

    if status_col:
        active = sum(
            1 for cell in dataset.column_values(status_col)
            if _category_key(cell).lower() == "active"
        )
        metrics.append(("Active Count", f"{active:,} ({active / dataset.row_count * 100:.0f}%)"))
    else:
        metrics.append(("Active Count", "-"))

    metrics.append(("Columns", str(len(dataset.columns))))

    if numeric_col:
        total = sum(_numeric_values(dataset, numeric_col))
        metrics.append((f"Total {numeric_col}", format_number(total)))
    else:
        metrics.append(("Sum", "-"))

    return metrics


def format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return f"{int(value):,}"
    if isinstance(value, float):
        return f"{value:,.2f}"
    return str(value)
