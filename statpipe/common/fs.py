"""Filesystem helpers for config, local datasets and exports."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_yaml(path: Path) -> Any:
    import yaml

    return yaml.safe_load(read_text(path))


def read_text(path: Path) -> str:
    # utf-8-sig drops the BOM that NSI exports carry.
    return path.read_text(encoding="utf-8-sig")


def read_json(path: Path) -> Any:
    return json.loads(read_text(path))


def write_json(path: Path, payload: Any) -> None:
    """Write sorted, indented JSON via a sibling temp file and an atomic rename."""
    ensure_dir(path.parent)
    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    os.replace(tmp_path, path)


def find_file_by_suffix(directory: Path, suffix: str) -> Path | None:
    """First file in ``directory`` whose name ends with ``suffix``, by name."""
    for candidate in sorted(directory.iterdir()):
        if candidate.is_file() and candidate.name.endswith(suffix):
            return candidate
    return None
