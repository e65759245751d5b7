"""Domain errors and failure typing."""

from __future__ import annotations

from dataclasses import dataclass


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class SourceUnavailable(PipelineError):
    """Raised when a network or filesystem fetch fails."""

    error_code = "SOURCE_UNAVAILABLE"


class NotFoundError(PipelineError):
    """Raised when a mandatory dataset resource is absent."""

    error_code = "NOT_FOUND"

    def __init__(self, message: str, *, dataset_id: str | None = None) -> None:
        super().__init__(message)
        self.dataset_id = dataset_id


class FormatError(PipelineError):
    """Raised for structurally invalid source payloads that cannot be repaired."""

    error_code = "FORMAT_ERROR"


@dataclass(frozen=True)
class ParseWarning:
    """Row-level CSV issue. Logged and collected, never raised."""

    row: int
    code: str
    message: str
