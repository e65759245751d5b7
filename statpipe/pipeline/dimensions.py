"""Column type inference for tabular statistical data."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable, Protocol

from statpipe.common.constants import (
    GAZETTEER_PLACES,
    GEOGRAPHIC_KEYWORDS,
    TEMPORAL_KEYWORDS,
    TYPE_SAMPLE_SIZE,
    UNIQUE_VALUES_LIMIT,
    YEAR_MAX,
    YEAR_MIN,
)
from statpipe.common.models import (
    DataCharacteristics,
    Dimension,
    DimensionProfile,
    DimensionType,
    RawRecord,
    RecordValue,
)

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

YEAR_SAMPLE_RATIO = 0.5
GAZETTEER_MATCH_RATIO = 0.2
NUMERIC_RATIO = 0.8
KEY_CARDINALITY_RATIO = 0.9


class Gazetteer(Protocol):
    def matches(self, value: str) -> bool: ...


@dataclass(frozen=True)
class PlaceNameGazetteer:
    """Case-insensitive substring lookup against a list of place names."""

    names: tuple[str, ...]

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "PlaceNameGazetteer":
        return cls(tuple(name.strip().lower() for name in names if name.strip()))

    def matches(self, value: str) -> bool:
        lowered = value.lower()
        return any(name in lowered for name in self.names)


@dataclass(frozen=True)
class HeuristicsTable:
    """Keyword -> dimension type table plus the gazetteer used for inference."""

    keywords: dict[str, DimensionType]
    gazetteer: Gazetteer = field(default_factory=lambda: PlaceNameGazetteer.from_names(GAZETTEER_PLACES))

    @classmethod
    def from_config(cls, cfg: dict | None, *, gazetteer: Gazetteer | None = None) -> "HeuristicsTable":
        cfg = cfg or {}
        keywords: dict[str, DimensionType] = {}
        for keyword in cfg.get("temporal_keywords", TEMPORAL_KEYWORDS):
            keywords[keyword.lower()] = DimensionType.TEMPORAL
        for keyword in cfg.get("geographic_keywords", GEOGRAPHIC_KEYWORDS):
            keywords.setdefault(keyword.lower(), DimensionType.GEOGRAPHIC)
        if gazetteer is None:
            gazetteer = PlaceNameGazetteer.from_names(cfg.get("gazetteer", GAZETTEER_PLACES))
        return cls(keywords=keywords, gazetteer=gazetteer)

    def name_matches(self, name: str, dimension_type: DimensionType) -> bool:
        lowered = name.lower()
        return any(kind is dimension_type and keyword in lowered for keyword, kind in self.keywords.items())


@lru_cache(maxsize=1)
def default_heuristics() -> HeuristicsTable:
    return HeuristicsTable.from_config(None)


def is_finite_number(value: RecordValue) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _as_year(value: RecordValue) -> int | None:
    if is_finite_number(value):
        if isinstance(value, float) and not value.is_integer():
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        if match:
            return int(match.group(1))
    return None


def looks_like_years(unique_values: list[RecordValue]) -> bool:
    sample = unique_values[:TYPE_SAMPLE_SIZE]
    if not sample:
        return False
    years = [year for year in map(_as_year, sample) if year is not None and YEAR_MIN <= year <= YEAR_MAX]
    return len(years) / len(sample) > YEAR_SAMPLE_RATIO


def looks_like_places(unique_values: list[RecordValue], gazetteer: Gazetteer) -> bool:
    if not unique_values:
        return False
    matched = sum(1 for value in unique_values if gazetteer.matches(str(value)))
    return matched / len(unique_values) > GAZETTEER_MATCH_RATIO


def infer_dimension_type(
    name: str,
    values: list[RecordValue],
    heuristics: HeuristicsTable | None = None,
    *,
    unique_values: list[RecordValue] | None = None,
) -> DimensionType:
    """Classify one column.

    ``values`` are the column's non-null values in row order. Checks run in
    priority order: temporal name, year-like values, geographic name,
    gazetteer hits, mostly-numeric values, and categorical as the fallback.
    """
    heuristics = heuristics or default_heuristics()
    if unique_values is None:
        unique_values = _unique(values)

    if heuristics.name_matches(name, DimensionType.TEMPORAL):
        return DimensionType.TEMPORAL
    if looks_like_years(unique_values):
        return DimensionType.TEMPORAL
    if heuristics.name_matches(name, DimensionType.GEOGRAPHIC):
        return DimensionType.GEOGRAPHIC
    if looks_like_places(unique_values, heuristics.gazetteer):
        return DimensionType.GEOGRAPHIC
    if values and sum(1 for value in values if is_finite_number(value)) / len(values) > NUMERIC_RATIO:
        return DimensionType.NUMERICAL
    return DimensionType.CATEGORICAL


def is_key_dimension(dimension_type: DimensionType, cardinality: int, row_count: int) -> bool:
    if row_count > 0 and cardinality / row_count > KEY_CARDINALITY_RATIO:
        return True
    if dimension_type in (DimensionType.TEMPORAL, DimensionType.GEOGRAPHIC):
        return True
    return False


def _unique(values: list[RecordValue]) -> list[RecordValue]:
    return list(dict.fromkeys(values))


def _column(rows: list[RawRecord], header: str) -> list[RecordValue]:
    return [row.get(header) for row in rows if row.get(header) is not None]


def analyze_dimensions(
    rows: list[RawRecord],
    headers: list[str],
    heuristics: HeuristicsTable | None = None,
) -> list[Dimension]:
    heuristics = heuristics or default_heuristics()
    dimensions: list[Dimension] = []
    for header in headers:
        values = _column(rows, header)
        unique_values = _unique(values)
        dimension_type = infer_dimension_type(header, values, heuristics, unique_values=unique_values)
        cardinality = len(unique_values)
        dimensions.append(
            Dimension(
                name=header,
                type=dimension_type,
                cardinality=cardinality,
                is_key=is_key_dimension(dimension_type, cardinality, len(rows)),
            )
        )
    return dimensions


def analyze_characteristics(
    rows: list[RawRecord],
    heuristics: HeuristicsTable | None = None,
) -> DataCharacteristics:
    """Lighter profile used only for chart selection.

    Keeps at most ``UNIQUE_VALUES_LIMIT`` unique values per column and no rows.
    """
    if not rows:
        return DataCharacteristics(row_count=0, column_count=0)

    heuristics = heuristics or default_heuristics()
    headers = list(rows[0])
    profiles: list[DimensionProfile] = []
    for header in headers:
        values = _column(rows, header)
        unique_values = _unique(values)
        profiles.append(
            DimensionProfile(
                name=header,
                type=infer_dimension_type(header, values, heuristics, unique_values=unique_values),
                cardinality=len(unique_values),
                unique_values=tuple(unique_values[:UNIQUE_VALUES_LIMIT]),
            )
        )
    return DataCharacteristics(row_count=len(rows), column_count=len(headers), dimensions=tuple(profiles))
