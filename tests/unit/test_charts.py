from __future__ import annotations

from statpipe.common.models import ChartType, DataCharacteristics, DimensionProfile, DimensionType
from statpipe.pipeline.charts import select_chart_type, suggest_alternative_charts, validate_chart_type


def _category_rows(count: int) -> list[dict]:
    labels = [f"sector-{chr(ord('a') + i)}" for i in range(count)]
    return [{"sector": label, "amount": float(i + 1)} for i, label in enumerate(labels)]


def _profile(name, kind, cardinality=3):
    return DimensionProfile(name=name, type=kind, cardinality=cardinality)


def _characteristics(*dims, rows=10):
    return DataCharacteristics(row_count=rows, column_count=len(dims), dimensions=tuple(dims))


def test_geography_wins_over_time():
    rows = [{"year": 2020, "region": "X", "value": 5}, {"year": 2021, "region": "Y", "value": 7}]
    assert select_chart_type(rows) is ChartType.MAP


def test_pie_bar_boundary():
    assert select_chart_type(_category_rows(6)) is ChartType.PIE
    assert select_chart_type(_category_rows(7)) is ChartType.PIE
    assert select_chart_type(_category_rows(8)) is ChartType.BAR


def test_time_series_line_or_bar_by_row_count():
    short = [{"year": 2000 + i, "amount": float(i)} for i in range(50)]
    long = [{"year": 1950 + i, "amount": float(i)} for i in range(51)]
    assert select_chart_type(short) is ChartType.BAR
    assert select_chart_type(long) is ChartType.LINE


def test_grouped_bar_scatter_table_and_default():
    grouped = _characteristics(
        _profile("a", DimensionType.CATEGORICAL),
        _profile("b", DimensionType.CATEGORICAL),
        _profile("n", DimensionType.NUMERICAL),
    )
    scatter = _characteristics(_profile("x", DimensionType.NUMERICAL), _profile("y", DimensionType.NUMERICAL))
    wide = _characteristics(*[_profile(f"c{i}", DimensionType.CATEGORICAL) for i in range(11)])
    big = _characteristics(_profile("c", DimensionType.CATEGORICAL), rows=501)
    plain = _characteristics(_profile("c", DimensionType.CATEGORICAL))

    assert select_chart_type(grouped) is ChartType.BAR
    assert select_chart_type(scatter) is ChartType.SCATTER
    assert select_chart_type(wide) is ChartType.TABLE
    assert select_chart_type(big) is ChartType.TABLE
    assert select_chart_type(plain) is ChartType.BAR


def test_select_chart_type_empty_data_defaults_to_bar():
    assert select_chart_type([]) is ChartType.BAR


def test_hint_dimension_types_override_inference():
    rows = [{"code": "A1", "amount": 1.0}, {"code": "B2", "amount": 2.0}]
    assert select_chart_type(rows) is ChartType.PIE
    assert select_chart_type(rows, {"dimension_types": {"code": "geographic"}}) is ChartType.MAP


def test_suggest_alternatives_union_in_first_seen_order():
    rows = [{"year": 2020, "region": "X", "value": 5}, {"year": 2021, "region": "Y", "value": 7}]
    assert suggest_alternative_charts(rows) == [ChartType.TABLE, ChartType.LINE, ChartType.BAR, ChartType.MAP]


def test_suggest_alternatives_categorical_and_scatter():
    characteristics = _characteristics(
        _profile("c", DimensionType.CATEGORICAL, cardinality=10),
        _profile("x", DimensionType.NUMERICAL),
        _profile("y", DimensionType.NUMERICAL),
    )
    assert suggest_alternative_charts(characteristics) == [
        ChartType.TABLE,
        ChartType.BAR,
        ChartType.PIE,
        ChartType.SCATTER,
    ]

    many = _characteristics(_profile("c", DimensionType.CATEGORICAL, cardinality=11), _profile("x", DimensionType.NUMERICAL))
    assert suggest_alternative_charts(many) == [ChartType.TABLE, ChartType.BAR]


def test_suggest_alternatives_appends_hint_suggestions():
    only_text = _characteristics(_profile("c", DimensionType.CATEGORICAL))
    hint = {"suggested_chart_types": ["map", "table"]}
    assert suggest_alternative_charts(only_text, hint) == [ChartType.TABLE, ChartType.MAP]


def test_validate_chart_type_reasons():
    only_numbers = _characteristics(_profile("x", DimensionType.NUMERICAL))
    crowded = _characteristics(
        _profile("c", DimensionType.CATEGORICAL, cardinality=16),
        _profile("x", DimensionType.NUMERICAL),
    )

    assert validate_chart_type("scatter", only_numbers).reason == "scatter plot requires at least 2 numerical dimensions"
    assert validate_chart_type(ChartType.PIE, crowded).reason == "too many categories for pie chart (>15)"
    assert validate_chart_type("map", only_numbers).reason == "no geographic dimensions found"
    assert validate_chart_type("line", only_numbers).reason == "no temporal dimensions found for line chart"
    assert validate_chart_type("pie", only_numbers).reason == "no categorical dimensions found"
    assert validate_chart_type("bubble", only_numbers).to_dict() == {
        "valid": False,
        "reason": "unsupported chart type: bubble",
    }


def test_validate_chart_type_valid_cases():
    rows = [{"year": 2020, "region": "X", "value": 5}, {"year": 2021, "region": "Y", "value": 7}]
    for chart in ("map", "line", "bar", "table"):
        result = validate_chart_type(chart, rows)
        assert result.valid
        assert result.to_dict() == {"valid": True}
    fifteen = _characteristics(
        _profile("c", DimensionType.CATEGORICAL, cardinality=15),
        _profile("x", DimensionType.NUMERICAL),
    )
    assert validate_chart_type("pie", fifteen).valid


def test_unknown_hint_values_are_ignored_not_raised():
    rows = [{"c": "a", "n": 1.0}, {"c": "b", "n": 2.0}]
    hint = {"dimension_types": {"c": "bogus", "n": "numerical"}, "suggested_chart_types": ["bubble", "map"]}

    assert validate_chart_type("pie", rows, hint).valid
    assert select_chart_type(rows, hint) is ChartType.PIE
    assert suggest_alternative_charts(rows, hint) == [ChartType.TABLE, ChartType.BAR, ChartType.PIE, ChartType.MAP]
