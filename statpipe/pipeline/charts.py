"""Rule-based chart type selection."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Union

from statpipe.common.models import (
    ChartType,
    ChartValidation,
    DataCharacteristics,
    DimensionType,
    RawRecord,
)
from statpipe.pipeline.dimensions import HeuristicsTable, analyze_characteristics

logger = logging.getLogger(__name__)

ChartInput = Union[list[RawRecord], DataCharacteristics]

PIE_MAX_CATEGORIES = 7
PIE_SUGGEST_MAX_CATEGORIES = 10
PIE_VALID_MAX_CATEGORIES = 15
LINE_MIN_ROWS = 50
TABLE_MIN_ROWS = 500
TABLE_MIN_COLUMNS = 10


def _declared_dimension_types(hint: dict | None) -> dict[str, DimensionType]:
    declared: dict[str, DimensionType] = {}
    for column, kind in ((hint or {}).get("dimension_types") or {}).items():
        try:
            declared[column] = DimensionType(kind)
        except ValueError:
            logger.warning("Ignoring unknown dimension type %r declared for column %s", kind, column)
    return declared


def _declared_chart_types(hint: dict | None) -> list[ChartType]:
    declared: list[ChartType] = []
    for chart in (hint or {}).get("suggested_chart_types") or []:
        try:
            declared.append(ChartType(chart))
        except ValueError:
            logger.warning("Ignoring unknown suggested chart type %r", chart)
    return declared


def _apply_hint(characteristics: DataCharacteristics, hint: dict | None) -> DataCharacteristics:
    declared = _declared_dimension_types(hint)
    if not declared:
        return characteristics
    dimensions = tuple(
        replace(dim, type=declared[dim.name]) if dim.name in declared else dim
        for dim in characteristics.dimensions
    )
    return replace(characteristics, dimensions=dimensions)


def characteristics_for(
    data: ChartInput,
    hint: dict | None = None,
    heuristics: HeuristicsTable | None = None,
) -> DataCharacteristics:
    """Profile ``data`` for chart selection.

    ``hint`` is a dataset descriptor; its optional ``dimension_types`` mapping
    overrides the inferred type of the named columns.
    """
    if isinstance(data, DataCharacteristics):
        characteristics = data
    else:
        characteristics = analyze_characteristics(data, heuristics)
    return _apply_hint(characteristics, hint)


def select_chart_type(
    data: ChartInput,
    hint: dict | None = None,
    *,
    heuristics: HeuristicsTable | None = None,
) -> ChartType:
    c = characteristics_for(data, hint, heuristics)

    if c.geographic >= 1 and c.numerical >= 1:
        return ChartType.MAP

    if c.temporal >= 1 and c.numerical >= 1:
        return ChartType.LINE if c.row_count > LINE_MIN_ROWS else ChartType.BAR

    if c.categorical == 1 and c.numerical == 1:
        category = c.first(DimensionType.CATEGORICAL)
        if category is not None and category.cardinality <= PIE_MAX_CATEGORIES:
            return ChartType.PIE
        return ChartType.BAR

    if c.categorical == 2 and c.numerical == 1:
        # Grouped bars.
        return ChartType.BAR

    if c.numerical == 2 and c.categorical == 0:
        return ChartType.SCATTER

    if c.row_count > TABLE_MIN_ROWS or c.column_count > TABLE_MIN_COLUMNS:
        return ChartType.TABLE

    return ChartType.BAR


def suggest_alternative_charts(
    data: ChartInput,
    hint: dict | None = None,
    *,
    heuristics: HeuristicsTable | None = None,
) -> list[ChartType]:
    """Every chart type that could reasonably show ``data``, in first-seen order.

    Types listed in the hint's ``suggested_chart_types`` are appended after the
    computed ones.
    """
    c = characteristics_for(data, hint, heuristics)
    suggestions: list[ChartType] = [ChartType.TABLE]

    if c.temporal >= 1 and c.numerical >= 1:
        suggestions += [ChartType.LINE, ChartType.BAR]

    if c.geographic >= 1 and c.numerical >= 1:
        suggestions += [ChartType.MAP, ChartType.BAR]

    if c.categorical >= 1 and c.numerical >= 1:
        suggestions.append(ChartType.BAR)
        category = c.first(DimensionType.CATEGORICAL)
        if category is not None and category.cardinality <= PIE_SUGGEST_MAX_CATEGORIES:
            suggestions.append(ChartType.PIE)

    if c.numerical >= 2:
        suggestions.append(ChartType.SCATTER)

    suggestions.extend(_declared_chart_types(hint))

    return list(dict.fromkeys(suggestions))


def validate_chart_type(
    chart_type: ChartType | str,
    data: ChartInput,
    hint: dict | None = None,
    *,
    heuristics: HeuristicsTable | None = None,
) -> ChartValidation:
    """Check the minimum structure ``chart_type`` needs. Never raises."""
    try:
        chart_type = ChartType(chart_type)
    except ValueError:
        return ChartValidation(valid=False, reason=f"unsupported chart type: {chart_type}")

    c = characteristics_for(data, hint, heuristics)

    if chart_type is ChartType.MAP:
        if c.geographic == 0:
            return ChartValidation(valid=False, reason="no geographic dimensions found")
        if c.numerical == 0:
            return ChartValidation(valid=False, reason="no numerical dimensions found")

    elif chart_type is ChartType.LINE:
        if c.temporal == 0:
            return ChartValidation(valid=False, reason="no temporal dimensions found for line chart")
        if c.numerical == 0:
            return ChartValidation(valid=False, reason="no numerical dimensions found")

    elif chart_type is ChartType.PIE:
        if c.categorical == 0:
            return ChartValidation(valid=False, reason="no categorical dimensions found")
        if c.numerical == 0:
            return ChartValidation(valid=False, reason="no numerical dimensions found")
        category = c.first(DimensionType.CATEGORICAL)
        if category is not None and category.cardinality > PIE_VALID_MAX_CATEGORIES:
            return ChartValidation(
                valid=False,
                reason=f"too many categories for pie chart (>{PIE_VALID_MAX_CATEGORIES})",
            )

    elif chart_type is ChartType.SCATTER:
        if c.numerical < 2:
            return ChartValidation(valid=False, reason="scatter plot requires at least 2 numerical dimensions")

    return ChartValidation(valid=True)
