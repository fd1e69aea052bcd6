from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

LOGGER_NAME = "rmskubeconfig"

_FIXED_KEYS = ("ts", "level", "action", "result", "duration_ms", "cluster_id", "message")


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line.

    ``cluster_id`` is only present on per-cluster events; run-level events omit it.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "action": getattr(record, "action", "log"),
            "result": getattr(record, "result", "info"),
            "duration_ms": getattr(record, "duration_ms", 0),
        }
        cluster_id = getattr(record, "cluster_id", None)
        if cluster_id is not None:
            payload["cluster_id"] = cluster_id
        message = record.getMessage()
        if message:
            payload["message"] = message
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            payload.update({k: v for k, v in fields.items() if k not in _FIXED_KEYS})
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def configure_logging(*, level: str) -> logging.Logger:
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False

    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
    return logger


@dataclass(frozen=True, slots=True)
class Timer:
    start: float

    @staticmethod
    def start_now() -> "Timer":
        return Timer(start=time.monotonic())

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.start) * 1000)


def log_event(
    logger: logging.Logger,
    *,
    action: str,
    result: str,
    duration_ms: int = 0,
    cluster_id: str | None = None,
    level: int = logging.INFO,
    message: str = "",
    fields: dict[str, Any] | None = None,
) -> None:
    logger.log(
        level,
        message,
        extra={
            "action": action,
            "result": result,
            "duration_ms": duration_ms,
            "cluster_id": cluster_id,
            "fields": fields or {},
        },
    )


@contextmanager
def log_step(
    logger: logging.Logger,
    *,
    action: str,
    cluster_id: str | None = None,
    fields: dict[str, Any] | None = None,
) -> Iterator[dict[str, Any]]:
    """
    Time a block and log one ``ok`` or ``failed`` event for it.

    The yielded dict is logged with the event, so the block can add counts or paths.
    Exceptions are logged with their type and re-raised unchanged.
    """

    timer = Timer.start_now()
    step_fields: dict[str, Any] = dict(fields or {})
    try:
        yield step_fields
    except Exception as e:
        log_event(
            logger,
            action=action,
            result="failed",
            duration_ms=timer.elapsed_ms(),
            cluster_id=cluster_id,
            level=logging.ERROR,
            message=str(e),
            fields={**step_fields, "error": type(e).__name__},
        )
        raise
    log_event(
        logger,
        action=action,
        result="ok",
        duration_ms=timer.elapsed_ms(),
        cluster_id=cluster_id,
        fields=step_fields,
    )
