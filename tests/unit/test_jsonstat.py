from __future__ import annotations

import json
from pathlib import Path

import pytest

from statpipe.common.errors import FormatError
from statpipe.fetch.jsonstat import convert_jsonstat, decode_flat_index, validate_jsonstat_data


def test_decode_flat_index_one_dimension():
    assert [decode_flat_index(i, [4]) for i in range(4)] == [[0], [1], [2], [3]]


def test_decode_flat_index_two_dimensions_last_fastest():
    assert [decode_flat_index(i, [2, 3]) for i in range(6)] == [
        [0, 0],
        [0, 1],
        [0, 2],
        [1, 0],
        [1, 1],
        [1, 2],
    ]


def test_decode_flat_index_three_dimensions():
    sizes = [2, 3, 4]
    assert decode_flat_index(0, sizes) == [0, 0, 0]
    assert decode_flat_index(5, sizes) == [0, 1, 1]
    assert decode_flat_index(12, sizes) == [1, 0, 0]
    assert decode_flat_index(23, sizes) == [1, 2, 3]


def test_decode_flat_index_no_dimensions():
    assert decode_flat_index(0, []) == []


def test_decode_flat_index_rejects_bad_input():
    with pytest.raises(ValueError):
        decode_flat_index(1, [2, 0])
    with pytest.raises(ValueError):
        decode_flat_index(-1, [2])


def test_convert_jsonstat_row_major_record():
    cube = {
        "id": ["A", "B"],
        "dimension": {
            "A": {"category": {"index": ["a1", "a2"]}},
            "B": {"category": {"index": ["b1", "b2", "b3"]}},
        },
        "value": [10, 20, 30, 40, 50, 60],
    }

    rows = convert_jsonstat(cube)

    assert len(rows) == 6
    assert rows[4] == {"A": "a2", "B": "b2", "value": 50}
    assert list(rows[0]) == ["A", "B", "value"]


def test_convert_jsonstat_fixture_orders_object_index_by_position():
    cube = json.loads(Path("tests/fixtures/jsonstat/gdp_cube.json").read_text(encoding="utf-8"))

    rows = convert_jsonstat(cube)

    assert rows[0] == {"time": "2021", "geo": "BG3", "value": 10.5}
    assert rows[3] == {"time": "2022", "geo": "BG3", "value": 40}
    assert rows[5]["value"] is None


def test_convert_jsonstat_dimension_names_without_id_and_label_only_category():
    cube = {
        "dimension": {
            "unit": {"category": {"label": {"THS": "Thousands"}}},
            "sex": {"category": {"index": ["M", "F"]}},
        },
        "value": ["1.5", "x"],
    }

    rows = convert_jsonstat(cube)

    assert rows == [
        {"unit": "THS", "sex": "M", "value": 1.5},
        {"unit": "THS", "sex": "F", "value": None},
    ]


@pytest.mark.parametrize(
    "cube",
    [
        None,
        {},
        {"dimension": {"A": {"category": {"index": ["a"]}}}},
        {"value": [1, 2]},
        {"value": [1], "id": ["A"]},
        {"value": [1], "id": ["A"], "dimension": {"B": {"category": {"index": ["b"]}}}},
        {"value": [1], "dimension": {"A": {"category": {}}}},
    ],
)
def test_convert_jsonstat_structural_errors_are_fatal(cube):
    with pytest.raises(FormatError):
        convert_jsonstat(cube)


def test_validate_jsonstat_data():
    assert validate_jsonstat_data({"value": [], "id": ["A"]})
    assert not validate_jsonstat_data({"value": {}, "id": ["A"]})
    assert not validate_jsonstat_data([1, 2])
