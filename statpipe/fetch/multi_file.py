"""Multi-file NSI datasets: primary data, field metadata and code lists."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from statpipe.common.constants import LOCAL_CODELISTS_SUFFIX, LOCAL_DATA_SUFFIX, LOCAL_FIELDS_SUFFIX
from statpipe.common.errors import NotFoundError, SourceUnavailable
from statpipe.common.fs import find_file_by_suffix, read_text
from statpipe.common.http import HttpClient
from statpipe.common.models import MultiFileSource, RawRecord
from statpipe.fetch.csv_parse import parse_csv_text

logger = logging.getLogger(__name__)


def _parse(text: str) -> list[RawRecord]:
    if not text:
        return []
    return parse_csv_text(text, dynamic_typing=False).rows


def _fetch_optional(client: HttpClient, url: str | None, label: str) -> str:
    if not url:
        return ""
    try:
        return client.get_text(url, accept="text/csv")
    except SourceUnavailable as exc:
        logger.warning("Optional %s resource unavailable, continuing without it: %s", label, exc)
        return ""


def fetch_multi_csv(
    data_url: str,
    fields_url: str | None = None,
    codelists_url: str | None = None,
    *,
    client: HttpClient | None = None,
) -> MultiFileSource:
    """Fetch the three resources of a multi-file dataset concurrently.

    The data resource is mandatory and its failure propagates; the field and
    code-list resources degrade to empty lists.
    """
    owns_client = client is None
    client = client or HttpClient()
    try:
        with ThreadPoolExecutor(max_workers=3) as pool:
            data_future = pool.submit(client.get_text, data_url, accept="text/csv")
            fields_future = pool.submit(_fetch_optional, client, fields_url, "fields")
            codelists_future = pool.submit(_fetch_optional, client, codelists_url, "codelists")
            data_text = data_future.result()
            fields_text = fields_future.result()
            codelists_text = codelists_future.result()
    finally:
        if owns_client:
            client.close()

    return MultiFileSource(
        data=_parse(data_text),
        fields=_parse(fields_text),
        code_lists=_parse(codelists_text),
    )


def _read_optional(path: Path | None) -> str:
    if path is None:
        return ""
    try:
        return read_text(path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Optional file %s unreadable, continuing without it: %s", path, exc)
        return ""


def load_local_multi_csv(dataset_id: str, *, root: Path) -> MultiFileSource:
    """Load a multi-file dataset from ``<root>/<dataset_id>/``.

    Files are matched by suffix: ``-data.csv`` (mandatory), ``-fields.csv``
    and ``-codelists.csv`` (optional).
    """
    dataset_dir = root / dataset_id
    if not dataset_dir.is_dir():
        raise NotFoundError(f"Dataset directory not found for {dataset_id}: {dataset_dir}", dataset_id=dataset_id)

    data_file = find_file_by_suffix(dataset_dir, LOCAL_DATA_SUFFIX)
    if data_file is None:
        raise NotFoundError(f"Data CSV not found for {dataset_id} in {dataset_dir}", dataset_id=dataset_id)
    fields_file = find_file_by_suffix(dataset_dir, LOCAL_FIELDS_SUFFIX)
    codelists_file = find_file_by_suffix(dataset_dir, LOCAL_CODELISTS_SUFFIX)

    with ThreadPoolExecutor(max_workers=3) as pool:
        data_future = pool.submit(read_text, data_file)
        fields_future = pool.submit(_read_optional, fields_file)
        codelists_future = pool.submit(_read_optional, codelists_file)
        try:
            data_text = data_future.result()
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceUnavailable(f"Failed reading {data_file}: {exc}") from exc
        fields_text = fields_future.result()
        codelists_text = codelists_future.result()

    return MultiFileSource(
        data=_parse(data_text),
        fields=_parse(fields_text),
        code_lists=_parse(codelists_text),
    )
