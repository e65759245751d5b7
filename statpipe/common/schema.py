"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from statpipe.common.constants import SUPPORTED_FORMATS, SUPPORTED_LOCALES
from statpipe.common.errors import ConfigError
from statpipe.common.models import ChartType, DimensionType

DATASET_KNOWN_KEYS = {
    "id",
    "format",
    "title",
    "urls",
    "fields_urls",
    "codelist_urls",
    "local_id",
    "value_column",
    "suggested_chart_types",
    "dimension_types",
}
HEURISTICS_KNOWN_KEYS = {"temporal_keywords", "geographic_keywords", "gazetteer"}


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_locale_map(value: object, ctx: str) -> None:
    if not isinstance(value, dict) or not value:
        raise ConfigError(f"{ctx} must be a non-empty locale mapping")
    unknown = set(value) - set(SUPPORTED_LOCALES)
    if unknown:
        raise ConfigError(f"Unsupported locales in {ctx}: {', '.join(sorted(unknown))}")


def validate_dataset_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    if not isinstance(cfg, dict):
        raise ConfigError("dataset entry must be a mapping")
    _assert_required_keys(cfg, {"id", "format"}, "dataset")
    ctx = f"dataset {cfg['id']}"
    _assert_no_unknown_keys(cfg, DATASET_KNOWN_KEYS, ctx, allow_unknown)

    fmt = cfg["format"]
    if fmt not in SUPPORTED_FORMATS:
        raise ConfigError(f"Unsupported format in {ctx}: {fmt}")

    if fmt == "local":
        _assert_required_keys(cfg, {"local_id"}, ctx)
    else:
        _assert_required_keys(cfg, {"urls"}, ctx)
        _assert_locale_map(cfg["urls"], f"{ctx}.urls")

    for optional in ("fields_urls", "codelist_urls"):
        if optional in cfg:
            if fmt != "multi-csv":
                raise ConfigError(f"{ctx}.{optional} is only valid for multi-csv datasets")
            _assert_locale_map(cfg[optional], f"{ctx}.{optional}")

    chart_types = {chart.value for chart in ChartType}
    for chart in cfg.get("suggested_chart_types") or []:
        if chart not in chart_types:
            raise ConfigError(f"Unknown chart type in {ctx}.suggested_chart_types: {chart}")

    dimension_types = {kind.value for kind in DimensionType}
    for column, kind in (cfg.get("dimension_types") or {}).items():
        if kind not in dimension_types:
            raise ConfigError(f"Unknown dimension type for {ctx}.dimension_types.{column}: {kind}")

    return cfg


def validate_datasets_config(cfg: dict, *, allow_unknown: bool = False) -> dict[str, dict]:
    _assert_required_keys(cfg, {"datasets"}, "datasets")
    entries = cfg["datasets"]
    if not isinstance(entries, list) or not entries:
        raise ConfigError("datasets.datasets must be a non-empty list")

    out: dict[str, dict] = {}
    for entry in entries:
        validated = validate_dataset_config(entry, allow_unknown=allow_unknown)
        dataset_id = str(validated["id"])
        if dataset_id in out:
            raise ConfigError(f"Duplicate dataset id: {dataset_id}")
        out[dataset_id] = validated
    return out


def validate_heuristics_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    _assert_no_unknown_keys(cfg, HEURISTICS_KNOWN_KEYS, "heuristics", allow_unknown)
    for key in HEURISTICS_KNOWN_KEYS & set(cfg):
        values = cfg[key]
        if not isinstance(values, list) or not all(isinstance(v, str) and v.strip() for v in values):
            raise ConfigError(f"heuristics.{key} must be a list of non-empty strings")
    return cfg
