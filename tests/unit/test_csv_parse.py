from __future__ import annotations

import csv

import pytest

from statpipe.fetch.csv_fetch import fetch_csv, validate_csv_data
from statpipe.fetch.csv_parse import coerce_cell, parse_csv_text


def test_parse_csv_text_trims_headers_and_types_numbers():
    text = " year , region ,value\n2020,Sofia,1.5\n2021,Varna,7\n"

    result = parse_csv_text(text)

    assert result.headers == ["year", "region", "value"]
    assert result.rows == [
        {"year": 2020, "region": "Sofia", "value": 1.5},
        {"year": 2021, "region": "Varna", "value": 7},
    ]
    assert result.warnings == []


def test_parse_csv_text_keeps_column_order():
    result = parse_csv_text("b,a,c\n1,2,3\n")
    assert list(result.rows[0]) == ["b", "a", "c"]


def test_parse_csv_text_skips_blank_lines_and_bom():
    result = parse_csv_text("\ufeffcode,label\n\nA,Alpha\n\n")
    assert result.headers == ["code", "label"]
    assert result.rows == [{"code": "A", "label": "Alpha"}]


def test_parse_csv_text_warns_on_ragged_rows_without_aborting():
    result = parse_csv_text("a,b,c\n1,2\n4,5,6,7\n8,9,10\n")

    assert result.rows == [
        {"a": 1, "b": 2, "c": None},
        {"a": 4, "b": 5, "c": 6},
        {"a": 8, "b": 9, "c": 10},
    ]
    assert [w.code for w in result.warnings] == ["TooFewFields", "TooManyFields"]
    assert [w.row for w in result.warnings] == [0, 1]


def test_parse_csv_text_string_mode_leaves_cells_untouched():
    result = parse_csv_text("Code,Value\n007,\n", dynamic_typing=False)
    assert result.rows == [{"Code": "007", "Value": ""}]


def test_parse_csv_text_dedupes_repeated_headers():
    result = parse_csv_text("x,x,y\n1,2,3\n")
    assert result.headers == ["x", "x_1", "y"]


def test_coerce_cell_variants():
    assert coerce_cell("") is None
    assert coerce_cell("42") == 42
    assert coerce_cell("-3.25") == -3.25
    assert coerce_cell("1e3") == 1000.0
    assert coerce_cell("BG411") == "BG411"
    assert coerce_cell("2020-Q1") == "2020-Q1"
    assert coerce_cell("12345678901234567890") == "12345678901234567890"


class FakeTextClient:
    def __init__(self, text: str):
        self.text = text
        self.accepts: list[str] = []

    def get_text(self, url: str, *, accept: str = "text/csv", timeout=None) -> str:
        self.accepts.append(accept)
        return self.text

    def close(self) -> None:
        raise AssertionError("injected client must stay open")


def test_fetch_csv_types_cells_and_validates():
    client = FakeTextClient("Region,Year,Population\nSofia,2021,1300000\nVarna,2021,\n")

    rows = fetch_csv("https://example.test/pop.csv", client=client)

    assert rows == [
        {"Region": "Sofia", "Year": 2021, "Population": 1300000},
        {"Region": "Varna", "Year": 2021, "Population": None},
    ]
    assert client.accepts == ["text/csv"]
    assert validate_csv_data(rows)
    assert not validate_csv_data([])
    assert not validate_csv_data([{}])
    assert not validate_csv_data({"rows": rows})


@pytest.fixture
def small_field_limit():
    previous = csv.field_size_limit(10)
    yield
    csv.field_size_limit(previous)


def test_malformed_row_keeps_its_own_row_number(small_field_limit):
    text = "a,b\n1,2\n" + "x" * 20 + ",3\n4,5\n"

    result = parse_csv_text(text)

    assert [warning.code for warning in result.warnings] == ["MalformedRow"]
    assert result.warnings[0].row == 1
    assert result.rows == [{"a": 1, "b": 2}, {"a": 4, "b": 5}]


def test_malformed_row_numbers_do_not_collide_with_shape_warnings(small_field_limit):
    text = "a,b\n" + "y" * 20 + ",1\n7\n"

    result = parse_csv_text(text)

    assert [(warning.row, warning.code) for warning in result.warnings] == [
        (0, "MalformedRow"),
        (1, "TooFewFields"),
    ]
