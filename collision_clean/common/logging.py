"""JSON-lines logging with a stable field set."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from collision_clean.common.constants import JSON_LOG_FIELDS
from collision_clean.common.fs import ensure_dir
from collision_clean.common.time_utils import utc_timestamp_iso

LOGGER_NAMESPACE = "collision_clean"


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {"timestamp": utc_timestamp_iso(), "message": record.getMessage()}
        for field in JSON_LOG_FIELDS:
            payload.setdefault(field, getattr(record, field, None))
        return json.dumps(payload, ensure_ascii=False, sort_keys=True)


def build_logger(run_id: str, data_dir: Path, level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{run_id}")
    logger.setLevel(level.upper())
    logger.handlers.clear()
    logger.propagate = False

    stream = logging.StreamHandler()
    stream.setFormatter(JsonLineFormatter())
    logger.addHandler(stream)

    log_path = data_dir / "run_meta" / f"{run_id}.log.jsonl"
    ensure_dir(log_path.parent)
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(JsonLineFormatter())
    logger.addHandler(file_handler)

    return logger


def log_event(logger: logging.Logger, message: str, **event_fields: Any) -> None:
    logger.info(message, extra=event_fields)


def log_drop(logger: logging.Logger, stage: str, reason: str, dropped: int, rows_in: int) -> None:
    if dropped:
        logger.warning(
            f"{stage}: dropped {dropped} of {rows_in} records ({reason})",
            extra={"stage": stage, "event": "ROWS_DROPPED", "status": "ok", "dropped": dropped, "rows_in": rows_in},
        )
