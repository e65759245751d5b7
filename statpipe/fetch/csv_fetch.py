"""Flat CSV fetch stage."""

from __future__ import annotations

import logging

from statpipe.common.http import HttpClient
from statpipe.common.models import RawRecord
from statpipe.fetch.csv_parse import parse_csv_text

logger = logging.getLogger(__name__)


def fetch_csv(url: str, *, delimiter: str = ",", client: HttpClient | None = None) -> list[RawRecord]:
    """Fetch a CSV document and parse it with dynamic typing.

    Transport failures raise ``SourceUnavailable``; row-level problems are
    logged and the best-effort rows are returned.
    """
    owns_client = client is None
    client = client or HttpClient()
    try:
        text = client.get_text(url, accept="text/csv")
    finally:
        if owns_client:
            client.close()

    result = parse_csv_text(text, delimiter=delimiter, dynamic_typing=True)
    if result.warnings:
        logger.warning("CSV from %s parsed with %d warnings", url, len(result.warnings))
    return result.rows


def validate_csv_data(rows: object) -> bool:
    if not isinstance(rows, list) or not rows:
        return False
    first = rows[0]
    return isinstance(first, dict) and len(first) > 0
