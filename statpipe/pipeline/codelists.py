"""Code-list lookups and role-aware row resolution."""

from __future__ import annotations

import math
import re

from statpipe.common.constants import (
    CODE_COLUMN,
    CODE_LABEL_ALIASES,
    CODE_LIST_COLUMN,
    CODE_SUFFIX,
    DEFAULT_VALUE_COLUMN,
    REVISION_FIELD,
)
from statpipe.common.models import CodeListEntry, RawRecord, RecordValue

CodeMappings = dict[str, dict[str, str]]

DROPPED_COLUMNS = {"Units"}
REVISION_COLUMNS = {"RevisionColumn"}
# Source column -> output name for columns resolved against a code list.
LABELLED_ROLES = {
    "NUTS": "NUTS",
    "EKATTE": "EKATTE",
    "Age": "Age",
    "Residence": "Residence",
    "GenderID": "Gender",
    "Gender": "Gender",
    "Gender_Child": "Gender",
}
# Roles whose code 0 means the all-categories total.
TOTAL_ZERO_ROLES = {"Residence", "Gender"}
PERIOD_COLUMNS = {"periods", "Period", "Edu_schYear"}
VALUE_COLUMNS = {"ValueColumn", "Value"}
YEAR_FIELD = "Year"

_NON_DIGIT_RE = re.compile(r"\D")
_DECIMAL_RE = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?\s*$")


def _as_code(value: RecordValue) -> str:
    return "" if value is None else str(value)


def _entry_label(row: RawRecord, code: str) -> str:
    for alias in CODE_LABEL_ALIASES:
        label = row.get(alias)
        if label not in (None, ""):
            return str(label)
    return code


def code_list_entries(code_list_rows: list[RawRecord]) -> list[CodeListEntry]:
    entries: list[CodeListEntry] = []
    for row in code_list_rows:
        code_list = row.get(CODE_LIST_COLUMN)
        if not code_list:
            continue
        code = _as_code(row.get(CODE_COLUMN))
        entries.append(CodeListEntry(code_list=str(code_list), code=code, label=_entry_label(row, code)))
    return entries


def build_code_mappings(code_list_rows: list[RawRecord]) -> CodeMappings:
    """Build ``{code list: {code: label}}`` from code-list rows.

    Rows without a code-list name are skipped. Later rows win for a repeated
    code within one list.
    """
    mappings: CodeMappings = {}
    for entry in code_list_entries(code_list_rows):
        mappings.setdefault(entry.code_list, {})[entry.code] = entry.label
    return mappings


def parse_revision(value: RecordValue) -> int:
    digits = _NON_DIGIT_RE.sub("", _as_code(value))
    return int(digits) if digits else 0


def parse_value(value: RecordValue) -> float:
    """Plain decimal or exponent notation only; anything else counts as 0."""
    text = _as_code(value)
    if not _DECIMAL_RE.match(text):
        return 0.0
    number = float(text)
    return number if math.isfinite(number) else 0.0


def _resolve_label(mappings: CodeMappings, code_list: str, code: str, *, zero_is_total: bool) -> str:
    label = mappings.get(code_list, {}).get(code)
    if label:
        return label
    if zero_is_total and code == "0":
        return "Total"
    return code


def resolve_row(
    row: RawRecord,
    mappings: CodeMappings,
    *,
    value_column: str = DEFAULT_VALUE_COLUMN,
) -> RawRecord:
    resolved: RawRecord = {}
    for key, value in row.items():
        code = _as_code(value)

        if key in DROPPED_COLUMNS:
            continue
        if key in REVISION_COLUMNS:
            resolved[REVISION_FIELD] = parse_revision(value)
        elif key in LABELLED_ROLES:
            out_name = LABELLED_ROLES[key]
            resolved[out_name] = _resolve_label(
                mappings,
                key,
                code,
                zero_is_total=out_name in TOTAL_ZERO_ROLES,
            )
            resolved[f"{out_name}{CODE_SUFFIX}"] = code
        elif key in PERIOD_COLUMNS:
            resolved[YEAR_FIELD] = code
        elif key in VALUE_COLUMNS:
            resolved[value_column] = parse_value(value)
        elif key in mappings:
            resolved[key] = _resolve_label(mappings, key, code, zero_is_total=False)
            resolved[f"{key}{CODE_SUFFIX}"] = code
        else:
            resolved[key] = value
    return resolved


def resolve_rows(
    rows: list[RawRecord],
    mappings: CodeMappings,
    *,
    value_column: str = DEFAULT_VALUE_COLUMN,
) -> list[RawRecord]:
    return [resolve_row(row, mappings, value_column=value_column) for row in rows]
