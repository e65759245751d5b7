"""Normalised dataset construction plus row filtering, sorting and paging."""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Any

from statpipe.common.models import DatasetMetadata, NormalizedDataset, RawRecord
from statpipe.pipeline.dimensions import HeuristicsTable, analyze_dimensions


def normalize_data(rows: list[RawRecord], heuristics: HeuristicsTable | None = None) -> NormalizedDataset:
    if not rows:
        return NormalizedDataset(headers=[], rows=[], metadata=DatasetMetadata(row_count=0, column_count=0))

    headers = list(rows[0])
    dimensions = analyze_dimensions(rows, headers, heuristics)
    return NormalizedDataset(
        headers=headers,
        rows=rows,
        metadata=DatasetMetadata(
            row_count=len(rows),
            column_count=len(headers),
            dimensions=tuple(dimensions),
        ),
    )


def _with_rows(dataset: NormalizedDataset, rows: list[RawRecord]) -> NormalizedDataset:
    return replace(dataset, rows=rows, metadata=replace(dataset.metadata, row_count=len(rows)))


def filter_data(dataset: NormalizedDataset, filters: dict[str, Any]) -> NormalizedDataset:
    """Keep rows matching every filter; list values mean membership."""

    def matches(row: RawRecord) -> bool:
        for key, expected in filters.items():
            if isinstance(expected, (list, tuple, set)):
                if row.get(key) not in expected:
                    return False
            elif row.get(key) != expected:
                return False
        return True

    return _with_rows(dataset, [row for row in dataset.rows if matches(row)])


def sort_data(dataset: NormalizedDataset, sort_by: str, direction: str = "asc") -> NormalizedDataset:
    if direction not in ("asc", "desc"):
        raise ValueError(f"Unsupported sort direction: {direction}")

    present = [row for row in dataset.rows if row.get(sort_by) is not None]
    missing = [row for row in dataset.rows if row.get(sort_by) is None]
    # Numbers order before text so mixed columns stay comparable.
    present.sort(
        key=lambda row: (isinstance(row[sort_by], str), row[sort_by]),
        reverse=direction == "desc",
    )
    return replace(dataset, rows=present + missing)


def paginate(dataset: NormalizedDataset, page: int, page_size: int) -> tuple[NormalizedDataset, dict | None]:
    """Slice one 1-based page. Paging is off unless both values are positive."""
    if page <= 0 or page_size <= 0:
        return dataset, None

    total_rows = dataset.metadata.row_count
    start = (page - 1) * page_size
    page_rows = dataset.rows[start : start + page_size]
    pagination = {
        "page": page,
        "pageSize": page_size,
        "totalRows": total_rows,
        "totalPages": math.ceil(total_rows / page_size),
        "hasNext": start + page_size < total_rows,
        "hasPrev": page > 1,
    }
    return _with_rows(dataset, page_rows), pagination
