"""Header-mode CSV parsing with lenient dynamic typing."""

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field

from statpipe.common.errors import ParseWarning
from statpipe.common.models import RawRecord, RecordValue

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"^\s*-?\d+\s*$")
_FLOAT_RE = re.compile(r"^\s*-?(\d+\.?|\.\d+|\d+\.\d+)([eE][-+]?\d+)?\s*$")
# Integers beyond this lose precision as floats, so they stay text.
_MAX_SAFE_INT = 2**53 - 1


@dataclass
class CsvParseResult:
    headers: list[str] = field(default_factory=list)
    rows: list[RawRecord] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)


def coerce_cell(raw: str) -> RecordValue:
    """Convert a CSV cell to int/float when it is unambiguously numeric."""
    if raw == "":
        return None
    if _INT_RE.match(raw):
        number = int(raw)
        if abs(number) <= _MAX_SAFE_INT:
            return number
        return raw
    if _FLOAT_RE.match(raw):
        return float(raw)
    return raw


def _dedupe_headers(headers: list[str]) -> list[str]:
    seen: dict[str, int] = {}
    out: list[str] = []
    for header in headers:
        if header in seen:
            seen[header] += 1
            out.append(f"{header}_{seen[header]}")
        else:
            seen[header] = 0
            out.append(header)
    return out


def _warn(result: CsvParseResult, row: int, code: str, message: str) -> None:
    warning = ParseWarning(row=row, code=code, message=message)
    result.warnings.append(warning)
    logger.warning("CSV parse warning row=%s code=%s: %s", row, code, message)


def parse_csv_text(text: str, *, delimiter: str = ",", dynamic_typing: bool = True) -> CsvParseResult:
    result = CsvParseResult()
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    missing: RecordValue = None if dynamic_typing else ""
    headers: list[str] | None = None
    row_index = 0

    while True:
        try:
            cells = next(reader)
        except StopIteration:
            break
        except csv.Error as exc:
            _warn(result, row_index, "MalformedRow", f"line {reader.line_num}: {exc}")
            if headers is not None:
                row_index += 1
            continue

        if not cells or all(cell.strip() == "" for cell in cells):
            continue

        if headers is None:
            headers = _dedupe_headers([cell.strip() for cell in cells])
            result.headers = headers
            continue

        if len(cells) < len(headers):
            _warn(
                result,
                row_index,
                "TooFewFields",
                f"expected {len(headers)} fields but parsed {len(cells)}",
            )
        elif len(cells) > len(headers):
            _warn(
                result,
                row_index,
                "TooManyFields",
                f"expected {len(headers)} fields but parsed {len(cells)}",
            )

        record: RawRecord = {}
        for idx, header in enumerate(headers):
            if idx >= len(cells):
                record[header] = missing
            elif dynamic_typing:
                record[header] = coerce_cell(cells[idx])
            else:
                record[header] = cells[idx]
        result.rows.append(record)
        row_index += 1

    return result
