"""Normalised dataset export and pre-built dataset files."""

from __future__ import annotations

from pathlib import Path

from statpipe.common.fs import read_json, write_json
from statpipe.common.models import NormalizedDataset

DEFAULT_PREBUILT_ROOT = Path("data") / "prebuilt"


def write_normalized_json(path: Path, dataset: NormalizedDataset, *, extra: dict | None = None) -> Path:
    payload = dataset.to_dict()
    if extra:
        payload.update(extra)
    write_json(path, payload)
    return path


def prebuilt_path(root: Path, local_id: str) -> Path:
    return root / f"{local_id}.json"


def write_prebuilt(root: Path, local_id: str, dataset: NormalizedDataset) -> Path:
    """Write the full normalised dataset, without cache or paging info."""
    return write_normalized_json(prebuilt_path(root, local_id), dataset)


def read_prebuilt(root: Path, local_id: str) -> NormalizedDataset | None:
    """Load a pre-built dataset, or None when no file exists.

    A file that exists but does not parse raises ``ValueError``, ``KeyError``
    or ``TypeError``.
    """
    path = prebuilt_path(root, local_id)
    if not path.is_file():
        return None
    return NormalizedDataset.from_dict(read_json(path))
