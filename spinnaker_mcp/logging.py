"""JSON logging utilities for the MCP server."""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

LOGGER_NAME = "spinnaker_mcp"


class JsonFormatter(logging.Formatter):
    """Minimal JSON formatter adding an ISO timestamp and merging the event payload."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        event: dict[str, object] = getattr(record, "event", {})
        payload: dict[str, object] = {
            "ts": datetime.now(tz=UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if event:
            payload.update(event)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str) -> logging.Logger:
    """Configure the server logger and return it.

    Records go to stderr; stdout belongs to the stdio transport.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        logger.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


@contextmanager
def tool_log_context(
    logger: logging.Logger,
    *,
    tool: str,
    payload: dict[str, object] | None = None,
) -> Iterator[dict[str, object]]:
    """Capture execution timing and write a single structured log entry.

    The yielded dict is merged into the event, so callers can record an
    outcome (``status``, ``error_kind``, ``error``) without raising.
    """

    started = time.perf_counter()
    outcome: dict[str, object] = {"status": "ok"}
    try:
        yield outcome
    except Exception as exc:  # noqa: BLE001 - re-raise after logging
        outcome["status"] = "error"
        outcome["error"] = str(exc)
        raise
    finally:
        duration_ms = int((time.perf_counter() - started) * 1000)
        event: dict[str, object] = {"tool": tool, "duration_ms": duration_ms, **outcome}
        if payload:
            event["payload"] = payload
        logger.info("tool.execution", extra={"event": event})
