"""JSON-stat cube decoding."""

from __future__ import annotations

import logging
import math
from typing import Any

from statpipe.common.errors import FormatError
from statpipe.common.http import HttpClient
from statpipe.common.models import RawRecord, RecordValue

logger = logging.getLogger(__name__)


def decode_flat_index(index: int, dim_sizes: list[int]) -> list[int]:
    """Decode a flat cube offset into per-dimension indices.

    Row-major order: the last dimension varies fastest.
    """
    if index < 0:
        raise ValueError(f"index must be non-negative, got {index}")
    if any(size <= 0 for size in dim_sizes):
        raise ValueError(f"dimension sizes must be positive, got {dim_sizes}")

    indices = [0] * len(dim_sizes)
    remainder = index
    for d in range(len(dim_sizes) - 1, -1, -1):
        remainder, indices[d] = divmod(remainder, dim_sizes[d])
    return indices


def _category_keys(dimension: dict) -> list[str]:
    category = dimension.get("category") or {}
    index = category.get("index")
    if isinstance(index, list) and index:
        return [str(key) for key in index]
    if isinstance(index, dict) and index:
        # Object form maps category key to its position.
        return [str(key) for key, _pos in sorted(index.items(), key=lambda item: item[1])]
    labels = category.get("label")
    if isinstance(labels, dict):
        return [str(key) for key in labels]
    return []


def _coerce_value(value: Any) -> RecordValue:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if not (isinstance(value, float) and math.isnan(value)) else None
    try:
        return float(str(value))
    except ValueError:
        return None


def convert_jsonstat(cube: Any) -> list[RawRecord]:
    if not isinstance(cube, dict) or not isinstance(cube.get("value"), list):
        raise FormatError("Invalid JSON-stat format: missing value array")

    dimensions = cube.get("dimension")
    if not isinstance(dimensions, dict) or not dimensions:
        raise FormatError("Invalid JSON-stat format: missing dimensions")

    dim_names = cube["id"] if isinstance(cube.get("id"), list) else list(dimensions)

    dim_categories: list[list[str]] = []
    for name in dim_names:
        dimension = dimensions.get(name)
        if not isinstance(dimension, dict):
            raise FormatError(f"Invalid JSON-stat format: missing metadata for dimension {name}")
        keys = _category_keys(dimension)
        if not keys:
            raise FormatError(f"Invalid JSON-stat format: dimension {name} has no categories")
        dim_categories.append(keys)

    dim_sizes = [len(keys) for keys in dim_categories]
    values = cube["value"]
    expected = math.prod(dim_sizes)
    if len(values) != expected:
        logger.warning("JSON-stat value count %d does not match cube size %d", len(values), expected)

    rows: list[RawRecord] = []
    for i, raw_value in enumerate(values):
        row: RawRecord = {}
        for name, keys, pos in zip(dim_names, dim_categories, decode_flat_index(i, dim_sizes)):
            row[name] = keys[pos]
        row["value"] = _coerce_value(raw_value)
        rows.append(row)
    return rows


def fetch_jsonstat(url: str, *, client: HttpClient | None = None) -> list[RawRecord]:
    owns_client = client is None
    client = client or HttpClient()
    try:
        payload = client.get_json(url)
    finally:
        if owns_client:
            client.close()
    return convert_jsonstat(payload)


def validate_jsonstat_data(cube: Any) -> bool:
    return (
        isinstance(cube, dict)
        and isinstance(cube.get("value"), list)
        and bool(cube.get("dimension") or cube.get("id"))
    )
