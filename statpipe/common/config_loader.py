"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from statpipe.common.errors import ConfigError
from statpipe.common.fs import read_yaml
from statpipe.common.schema import validate_datasets_config, validate_heuristics_config


@dataclass(frozen=True)
class ConfigBundle:
    datasets: dict[str, dict]
    heuristics: dict = field(default_factory=dict)

    def dataset(self, dataset_id: str) -> dict | None:
        return self.datasets.get(dataset_id)


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    base = read_yaml(path) or {}
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path) or {}
    return _deep_merge(base, overlay)


def load_all_configs(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> ConfigBundle:
    datasets_path = config_dir / "datasets.yml"
    if not datasets_path.exists():
        raise ConfigError(f"Missing dataset registry: {datasets_path}")

    def overlay_for(name: str) -> Path | None:
        if overlay_config_dir is None:
            return None
        return overlay_config_dir / name

    datasets = validate_datasets_config(
        _load_yaml_with_overlay(datasets_path, overlay_for("datasets.yml")),
        allow_unknown=allow_unknown,
    )

    heuristics: dict = {}
    heuristics_path = config_dir / "heuristics.yml"
    if heuristics_path.exists():
        heuristics = validate_heuristics_config(
            _load_yaml_with_overlay(heuristics_path, overlay_for("heuristics.yml")),
            allow_unknown=allow_unknown,
        )

    return ConfigBundle(datasets=datasets, heuristics=heuristics)
