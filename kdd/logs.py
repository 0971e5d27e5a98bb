from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger.json import JsonFormatter

LOGGER_NAME = "kdd"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "FATAL": logging.CRITICAL,
    "CRITICAL": logging.CRITICAL,
    "PANIC": logging.CRITICAL,
}

logger = logging.getLogger(LOGGER_NAME)


def parse_level(name: str | None, default: int = logging.WARNING) -> int:
    """Map a level name (``debug``, ``warn``, ...) to a logging level."""
    if not name:
        return default
    return _LEVELS.get(name.strip().upper(), default)


def _format_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(str(v) for v in value) + "]"
    text = str(value)
    if " " in text or not text:
        return repr(text)
    return text


class FieldsFormatter(logging.Formatter):
    """Plain text formatter that appends ``key=value`` pairs from ``log_event``."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(message)s", datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = getattr(record, "fields", None) or {}
        if fields:
            line += " " + " ".join(f"{k}={_format_value(v)}" for k, v in fields.items())
        return line


class JsonFieldsFormatter(JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record.pop("fields", None)
        for key, value in (getattr(record, "fields", None) or {}).items():
            log_record[key] = value
        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
        log_record["level"] = record.levelname


def setup_logging(level: int = logging.WARNING, json_format: bool = False) -> None:
    """Send ``kdd`` logs to stdout, as text or as JSON lines."""
    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        handler.setFormatter(JsonFieldsFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    else:
        handler.setFormatter(FieldsFormatter())

    logger.handlers = [handler]
    logger.setLevel(level)
    logger.propagate = False

    # Library noise
    for name in ("httpx", "httpcore", "urllib3", "docker"):
        logging.getLogger(name).setLevel(logging.WARNING)


def log_event(level: str, message: str, exc: BaseException | None = None, **fields: Any) -> None:
    """Log ``message`` with structured context fields.

    ``exc`` is rendered as an ``error`` field, mirroring how the reconciler
    reports a failed call next to the upstream it was working on.
    """
    if exc is not None:
        fields["error"] = f"{type(exc).__name__}: {exc}"
    logger.log(parse_level(level, logging.INFO), message, extra={"fields": fields})
