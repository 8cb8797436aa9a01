"""Logging setup for skogul: level names, text and JSON output formats."""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOGGER_NAME = "skogul"

_LEVELS = {
    "e": logging.ERROR,
    "error": logging.ERROR,
    "w": logging.WARNING,
    "warn": logging.WARNING,
    "i": logging.INFO,
    "info": logging.INFO,
    "d": logging.DEBUG,
    "debug": logging.DEBUG,
    "v": TRACE,
    "verbose": TRACE,
    "t": TRACE,
    "trace": TRACE,
}

_LEVEL_NAMES = {
    TRACE: "trace",
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "fatal",
}

_PLAIN_VALUE = re.compile(r"^[A-Za-z0-9\-._/@^+]+$")

_log = logging.getLogger(LOGGER_NAME)


def get_log_level(requested_level: str) -> int:
    """Map a level name or its one-letter shorthand to a logging level.

    Unknown names fall back to WARNING, with a warning logged.
    """
    level = _LEVELS.get(requested_level.lower())
    if level is None:
        _log.warning("Invalid loglevel '%s', defaulting to 'warn'", requested_level)
        return logging.WARNING
    return level


def _level_name(levelno: int) -> str:
    return _LEVEL_NAMES.get(levelno, logging.getLevelName(levelno).lower())


def _timestamp(record: logging.LogRecord) -> str:
    moment = datetime.fromtimestamp(record.created, tz=timezone.utc).astimezone()
    return moment.isoformat(timespec="seconds")


def _fields(record: logging.LogRecord) -> dict:
    fields = getattr(record, "fields", None)
    return dict(fields) if isinstance(fields, dict) else {}


def _quote(value: object) -> str:
    text = str(value)
    if _PLAIN_VALUE.match(text):
        return text
    return json.dumps(text, ensure_ascii=False)


class _TextFormatter(logging.Formatter):
    """key=value output: time (optional), level, msg, then extra fields."""

    def __init__(self, with_timestamp: bool) -> None:
        super().__init__()
        self.with_timestamp = with_timestamp

    def format(self, record: logging.LogRecord) -> str:
        parts = []
        if self.with_timestamp:
            parts.append(f"time={_quote(_timestamp(record))}")
        parts.append(f"level={_level_name(record.levelno)}")
        parts.append(f"msg={_quote(record.getMessage())}")
        parts.extend(f"{key}={_quote(value)}" for key, value in sorted(_fields(record).items()))
        if record.exc_info:
            parts.append(f"error={_quote(self.formatException(record.exc_info))}")
        return " ".join(parts)


class _JSONFormatter(logging.Formatter):
    """One JSON object per line with level, msg, time and extra fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry = _fields(record)
        entry["level"] = _level_name(record.levelno)
        entry["msg"] = record.getMessage()
        entry["time"] = _timestamp(record)
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, sort_keys=True)


def configure_logger(requested_level: str, log_timestamp: bool, log_format: str) -> logging.Logger:
    """Set level and output format of the skogul logger, writing to stdout."""
    level = get_log_level(requested_level)
    _log.setLevel(level)
    _log.propagate = False
    _log.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if log_format.lower() == "json":
        handler.setFormatter(_JSONFormatter())
    else:
        handler.setFormatter(_TextFormatter(with_timestamp=log_timestamp))
    _log.addHandler(handler)
    return _log