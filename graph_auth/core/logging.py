"""Logging configuration for graph-auth.

graph-auth is a library: it never configures logging on import.  Modules
log through `logging.getLogger(__name__)` and the host application calls
setup_logging() once at startup (or wires graph_auth.* into its own
logging config).

TWO FORMATTERS
----------------
  _ContainerFormatter: human-readable, single-line, for local dev.

  _JsonFormatter: one JSON object per line, for log aggregation.
    Token-exchange calls attach `app_id`, `endpoint`, `method`,
    `status_code` and `duration_ms` via `extra=`; those become top-level
    keys so you can filter on e.g. endpoint == "exchange_sessions".

    Set LOG_JSON=true to switch to JSON output.

WHAT IS NEVER LOGGED
----------------------
App secrets, authorization codes, session keys and access tokens.  Log
the app_id, the endpoint and the outcome; never the credential itself.
"""

from __future__ import annotations

import json
import logging
import sys


# Keys the token client attaches via `extra=`
TOKEN_CALL_FIELDS = ("app_id", "endpoint", "method", "status_code", "duration_ms")


class _MillisecondFormatter(logging.Formatter):
    """ISO-8601 timestamps with milliseconds, e.g. 2024-05-01T12:00:00.123+0000."""

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        base = super().formatTime(record, datefmt)
        # .NNN goes before the +0000 offset
        return f"{base[:-5]}.{int(record.msecs):03d}{base[-5:]}"


class _ContainerFormatter(_MillisecondFormatter):
    """Single-line text; WARNING and above get a [filename:lineno] suffix."""

    _BASE_FMT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"
    _LOC_SUFFIX = "  [%(filename)s:%(lineno)d]"

    def format(self, record: logging.LogRecord) -> str:
        located = record.levelno >= logging.WARNING
        self._style._fmt = self._BASE_FMT + (self._LOC_SUFFIX if located else "")
        return super().format(record)


class _JsonFormatter(_MillisecondFormatter):
    """JSON Lines formatter.

    TOKEN_CALL_FIELDS passed through `extra=` appear as top-level keys.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(
            (key, getattr(record, key))
            for key in TOKEN_CALL_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Configure the root logger to write to stdout.

    Args:
        level_name: Log level string (debug/info/warning/error)
        json_format: If True, emit JSON lines. If False, human-readable.
                     Controlled by LOG_JSON in Settings.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    # httpx logs full request URLs at INFO, and GET token requests carry
    # client_secret in the query string
    for name in ("httpcore", "httpx"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
