"""Logging utilities for Lore RAG."""

from __future__ import annotations

import logging
import os
import sys
from enum import Enum
from typing import Any

import orjson

_DEFAULT_LEVEL = os.environ.get("LRAG_LOG_LEVEL", "INFO")


class JsonFormatter(logging.Formatter):
    """JSON line formatter; ``ctx_*`` extras become top-level fields, enums by value."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        for key, value in record.__dict__.items():
            if key.startswith("ctx_") and value is not None:
                payload[key] = _ctx_value(value)
        return orjson.dumps(payload, default=str).decode("utf-8")


def _ctx_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def configure_logging(level: str | int = _DEFAULT_LEVEL, use_json: bool = True) -> None:
    """Configure root logger with optional JSON formatting."""
    logging.captureWarnings(True)
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.handlers = [handler]


def get_logger(name: str = "lore_rag") -> logging.Logger:
    """Return configured logger, configuring root on first call."""
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "configure_logging", "get_logger"]
