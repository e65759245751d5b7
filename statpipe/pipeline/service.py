"""Dataset loading: cache, fetch by format, code-list resolution and normalisation."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from types import TracebackType

from statpipe.common.config_loader import ConfigBundle
from statpipe.common.constants import DEFAULT_LOCALE, DEFAULT_VALUE_COLUMN
from statpipe.common.errors import ConfigError, NotFoundError, PipelineError
from statpipe.common.http import HttpClient
from statpipe.common.logging import log_event
from statpipe.common.models import MultiFileSource, NormalizedDataset, RawRecord
from statpipe.fetch.csv_fetch import fetch_csv
from statpipe.fetch.jsonstat import fetch_jsonstat
from statpipe.fetch.multi_file import fetch_multi_csv, load_local_multi_csv
from statpipe.pipeline.cache import ResultCache, RowCache
from statpipe.pipeline.charts import characteristics_for, select_chart_type, suggest_alternative_charts
from statpipe.pipeline.codelists import build_code_mappings, resolve_rows
from statpipe.pipeline.dimensions import HeuristicsTable
from statpipe.pipeline.export import read_prebuilt, write_prebuilt
from statpipe.pipeline.normalise import normalize_data, paginate
from statpipe.pipeline.revisions import reconcile_revisions

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_ROOT = Path("source_data") / "nsi"


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class DatasetService:
    """Entry point for the presentation layer.

    Raw rows are cached per dataset and locale; normalisation and chart
    selection run on every call. Fetch errors propagate to the caller.
    With ``prebuilt_root`` set, local datasets are served from their
    pre-built JSON file when one exists, ahead of the cache.
    """

    def __init__(
        self,
        bundle: ConfigBundle,
        *,
        cache: RowCache | None = None,
        client: HttpClient | None = None,
        local_root: Path = DEFAULT_LOCAL_ROOT,
        heuristics: HeuristicsTable | None = None,
        prebuilt_root: Path | None = None,
    ) -> None:
        self.bundle = bundle
        self.cache: RowCache = cache if cache is not None else ResultCache()
        self.owns_client = client is None
        self.client = client or HttpClient()
        self.local_root = local_root
        self.prebuilt_root = prebuilt_root
        self.heuristics = heuristics or HeuristicsTable.from_config(bundle.heuristics)

    def close(self) -> None:
        if self.owns_client:
            self.client.close()

    def __enter__(self) -> "DatasetService":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def descriptor(self, dataset_id: str) -> dict:
        descriptor = self.bundle.dataset(dataset_id)
        if descriptor is None:
            raise NotFoundError(f"Unknown dataset: {dataset_id}", dataset_id=dataset_id)
        return descriptor

    def _url(self, descriptor: dict, key: str, locale: str, *, required: bool) -> str | None:
        url = (descriptor.get(key) or {}).get(locale)
        if url is None and required:
            raise ConfigError(f"dataset {descriptor['id']} has no {key} entry for locale {locale}")
        return url

    def _process_multi_file(self, source: MultiFileSource, value_column: str) -> list[RawRecord]:
        mappings = build_code_mappings(source.code_lists)
        rows = resolve_rows(source.data, mappings, value_column=value_column)
        return reconcile_revisions(rows, value_column=value_column)

    def fetch_rows(self, descriptor: dict, locale: str) -> list[RawRecord]:
        fmt = descriptor["format"]
        value_column = descriptor.get("value_column", DEFAULT_VALUE_COLUMN)

        if fmt == "local":
            source = load_local_multi_csv(str(descriptor["local_id"]), root=self.local_root)
            return self._process_multi_file(source, value_column)
        if fmt == "multi-csv":
            source = fetch_multi_csv(
                self._url(descriptor, "urls", locale, required=True),
                self._url(descriptor, "fields_urls", locale, required=False),
                self._url(descriptor, "codelist_urls", locale, required=False),
                client=self.client,
            )
            return self._process_multi_file(source, value_column)
        if fmt == "csv":
            return fetch_csv(self._url(descriptor, "urls", locale, required=True), client=self.client)
        if fmt == "json-stat":
            return fetch_jsonstat(self._url(descriptor, "urls", locale, required=True), client=self.client)
        raise ConfigError(f"Unsupported format for dataset {descriptor['id']}: {fmt}")

    def load_rows(self, dataset_id: str, locale: str) -> tuple[list[RawRecord], bool]:
        """Return raw rows and whether they came from the cache."""
        descriptor = self.descriptor(dataset_id)
        cached = self.cache.get(dataset_id, locale)
        if cached is not None:
            log_event(
                logger,
                "cache hit",
                stage="fetch",
                dataset=dataset_id,
                event="CACHE_HIT",
                status="ok",
                rows_out=len(cached),
            )
            return cached, True

        started = time.monotonic()
        rows = self.fetch_rows(descriptor, locale)
        self.cache.set(dataset_id, locale, rows)
        log_event(
            logger,
            "dataset fetched",
            stage="fetch",
            dataset=dataset_id,
            source=descriptor["format"],
            event="FETCH_END",
            status="ok",
            rows_out=len(rows),
            duration_ms=_elapsed_ms(started),
        )
        return rows, False

    def load_prebuilt(self, dataset_id: str) -> NormalizedDataset | None:
        """Pre-built dataset for a local descriptor, or None to fall back to the source.

        An unreadable or malformed file is logged and treated as absent.
        """
        descriptor = self.descriptor(dataset_id)
        if self.prebuilt_root is None or descriptor["format"] != "local":
            return None
        try:
            dataset = read_prebuilt(self.prebuilt_root, str(descriptor["local_id"]))
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Pre-built file for %s is unusable, loading from source: %s", dataset_id, exc)
            return None
        if dataset is not None:
            log_event(
                logger,
                "pre-built dataset served",
                stage="fetch",
                dataset=dataset_id,
                source="prebuilt",
                event="PREBUILT_HIT",
                status="ok",
                rows_out=dataset.metadata.row_count,
            )
        return dataset

    def load_dataset(
        self,
        dataset_id: str,
        locale: str,
        *,
        page: int = 0,
        page_size: int = 0,
    ) -> tuple[NormalizedDataset, dict]:
        normalized = self.load_prebuilt(dataset_id)
        if normalized is not None:
            info: dict = {"cached": False, "prebuilt": True}
        else:
            rows, cached = self.load_rows(dataset_id, locale)
            normalized = normalize_data(rows, self.heuristics)
            info = {"cached": cached}
        paged, pagination = paginate(normalized, page, page_size)
        if pagination is not None:
            info["pagination"] = pagination
        return paged, info

    def chart_decision(self, dataset_id: str, locale: str) -> dict:
        descriptor = self.descriptor(dataset_id)
        rows, cached = self.load_rows(dataset_id, locale)
        characteristics = characteristics_for(rows, descriptor, self.heuristics)
        chart_type = select_chart_type(characteristics, descriptor)
        alternatives = suggest_alternative_charts(characteristics, descriptor)
        return {
            "dataset": dataset_id,
            "locale": locale,
            "cached": cached,
            "chart_type": chart_type.value,
            "alternatives": [chart.value for chart in alternatives],
            "row_count": characteristics.row_count,
            "column_count": characteristics.column_count,
            "dimensions": [
                {"name": dim.name, "type": dim.type.value, "cardinality": dim.cardinality}
                for dim in characteristics.dimensions
            ],
        }

    def prebuild_local_datasets(self, root: Path, dataset_ids: list[str] | None = None) -> dict:
        """Write ``<root>/<local_id>.json`` for local datasets.

        Without ``dataset_ids`` every ``local`` descriptor in the registry is
        built. A dataset that fails is recorded and the rest still run.
        """
        if dataset_ids is None:
            dataset_ids = [
                dataset_id for dataset_id, descriptor in self.bundle.datasets.items() if descriptor["format"] == "local"
            ]

        summary: dict = {"succeeded": [], "failed": {}}
        for dataset_id in dataset_ids:
            descriptor = self.descriptor(dataset_id)
            if descriptor["format"] != "local":
                raise ConfigError(f"dataset {dataset_id} is not a local dataset and cannot be pre-built")

            started = time.monotonic()
            try:
                dataset = normalize_data(self.fetch_rows(descriptor, DEFAULT_LOCALE), self.heuristics)
            except PipelineError as exc:
                log_event(
                    logger,
                    f"pre-build failed for {dataset_id}: {exc}",
                    level=logging.WARNING,
                    stage="prebuild",
                    dataset=dataset_id,
                    event="PREBUILD_FAIL",
                    status="error",
                    error_code=exc.error_code,
                )
                summary["failed"][dataset_id] = str(exc)
                continue

            path = write_prebuilt(root, str(descriptor["local_id"]), dataset)
            log_event(
                logger,
                "pre-built dataset written",
                stage="prebuild",
                dataset=dataset_id,
                event="PREBUILD_END",
                status="ok",
                rows_out=dataset.metadata.row_count,
                duration_ms=_elapsed_ms(started),
            )
            summary["succeeded"].append(
                {"dataset": dataset_id, "path": str(path), "rowCount": dataset.metadata.row_count}
            )
        return summary
