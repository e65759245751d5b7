"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

# One source row. Insertion order of the dict is column order.
RecordValue = Union[str, int, float, None]
RawRecord = dict[str, RecordValue]


class DimensionType(str, Enum):
    TEMPORAL = "temporal"
    GEOGRAPHIC = "geographic"
    CATEGORICAL = "categorical"
    NUMERICAL = "numerical"


class ChartType(str, Enum):
    LINE = "line"
    BAR = "bar"
    PIE = "pie"
    MAP = "map"
    TABLE = "table"
    SCATTER = "scatter"


@dataclass(frozen=True)
class CodeListEntry:
    code_list: str
    code: str
    label: str


@dataclass(frozen=True)
class Dimension:
    name: str
    type: DimensionType
    cardinality: int
    is_key: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "cardinality": self.cardinality,
            "isKey": self.is_key,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Dimension":
        return cls(
            name=payload["name"],
            type=DimensionType(payload["type"]),
            cardinality=int(payload["cardinality"]),
            is_key=bool(payload["isKey"]),
        )


@dataclass(frozen=True)
class DimensionProfile:
    """Dimension summary used for chart selection, with a bounded value sample."""

    name: str
    type: DimensionType
    cardinality: int
    unique_values: tuple[RecordValue, ...] = ()


@dataclass(frozen=True)
class DataCharacteristics:
    row_count: int
    column_count: int
    dimensions: tuple[DimensionProfile, ...] = ()

    def count(self, dimension_type: DimensionType) -> int:
        return sum(1 for dim in self.dimensions if dim.type is dimension_type)

    def first(self, dimension_type: DimensionType) -> DimensionProfile | None:
        for dim in self.dimensions:
            if dim.type is dimension_type:
                return dim
        return None

    @property
    def temporal(self) -> int:
        return self.count(DimensionType.TEMPORAL)

    @property
    def geographic(self) -> int:
        return self.count(DimensionType.GEOGRAPHIC)

    @property
    def categorical(self) -> int:
        return self.count(DimensionType.CATEGORICAL)

    @property
    def numerical(self) -> int:
        return self.count(DimensionType.NUMERICAL)


@dataclass(frozen=True)
class DatasetMetadata:
    row_count: int
    column_count: int
    dimensions: tuple[Dimension, ...] = ()


@dataclass(frozen=True)
class NormalizedDataset:
    headers: list[str]
    rows: list[RawRecord]
    metadata: DatasetMetadata

    def to_dict(self) -> dict[str, Any]:
        return {
            "headers": list(self.headers),
            "rows": self.rows,
            "metadata": {
                "rowCount": self.metadata.row_count,
                "columnCount": self.metadata.column_count,
                "dimensions": [dim.to_dict() for dim in self.metadata.dimensions],
            },
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "NormalizedDataset":
        """Inverse of ``to_dict``; raises KeyError or ValueError on a malformed payload."""
        metadata = payload["metadata"]
        return cls(
            headers=list(payload["headers"]),
            rows=list(payload["rows"]),
            metadata=DatasetMetadata(
                row_count=int(metadata["rowCount"]),
                column_count=int(metadata["columnCount"]),
                dimensions=tuple(Dimension.from_dict(dim) for dim in metadata["dimensions"]),
            ),
        )


@dataclass(frozen=True)
class ChartValidation:
    valid: bool
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out = {"valid": self.valid}
        if self.reason is not None:
            out["reason"] = self.reason
        return out


@dataclass(frozen=True)
class CacheEntry:
    rows: list[RawRecord]
    timestamp_ms: int
    locale: str


@dataclass
class MultiFileSource:
    data: list[RawRecord] = field(default_factory=list)
    fields: list[RawRecord] = field(default_factory=list)
    code_lists: list[RawRecord] = field(default_factory=list)
