"""JSON-lines logging with a fixed field set."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from statpipe.common.constants import JSON_LOG_FIELDS
from statpipe.common.fs import ensure_dir
from statpipe.common.time_utils import utc_timestamp_iso

ROOT_LOGGER = "statpipe"


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record. Fields not passed via ``extra=`` are null."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {name: getattr(record, name, None) for name in JSON_LOG_FIELDS}
        payload["timestamp"] = utc_timestamp_iso()
        payload["message"] = record.getMessage()
        payload["level"] = record.levelname
        payload["logger"] = record.name
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _handler(handler: logging.Handler) -> logging.Handler:
    handler.setFormatter(JsonLineFormatter())
    return handler


def build_logger(run_id: str, level: str = "INFO", log_dir: Path | None = None) -> logging.Logger:
    """Configure the ``statpipe`` logger tree for one CLI run.

    Library modules log through ``logging.getLogger(__name__)`` and so inherit
    these handlers. With ``log_dir`` the run also goes to
    ``<log_dir>/<run_id>.log.jsonl``.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level.upper())
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()

    logger.addHandler(_handler(logging.StreamHandler()))
    if log_dir is not None:
        ensure_dir(log_dir)
        logger.addHandler(_handler(logging.FileHandler(log_dir / f"{run_id}.log.jsonl", encoding="utf-8")))
    return logger


def log_event(logger: logging.Logger, message: str, *, level: int = logging.INFO, **event_fields: Any) -> None:
    logger.log(level, message, extra=event_fields)
