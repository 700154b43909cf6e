"""
Centralized Logging

Architectural Intent:
- One `harp` logger tree; modules log through logging.getLogger(__name__)
- Human-readable lines on stderr by default, one JSON object per line with
  --json-logs
- Records may carry `host` and `release` extras; both formats show them
"""

import json
import logging
import sys
from datetime import datetime, UTC
from typing import Any, Optional, TextIO, Union

ROOT_LOGGER = "harp"
CONTEXT_FIELDS = ("host", "release")
HUMAN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(host_prefix)s%(message)s"


def _context(record: logging.LogRecord) -> dict[str, str]:
    return {
        name: str(value)
        for name in CONTEXT_FIELDS
        if (value := getattr(record, name, None))
    }


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class HostFormatter(logging.Formatter):
    """Prefixes the message with the host a record is about."""

    def __init__(self, fmt: str = HUMAN_FORMAT):
        super().__init__(fmt)

    def format(self, record: logging.LogRecord) -> str:
        host = _context(record).get("host")
        record.host_prefix = f"{host}: " if host else ""
        return super().format(record)


def host_logger(logger: logging.Logger, host: Any) -> logging.LoggerAdapter:
    """Binds a host to every record logged through the returned adapter."""
    return logging.LoggerAdapter(logger, {"host": str(host)})


def resolve_level(level: Union[int, str]) -> int:
    """Accepts a level number or a name such as "debug" or "WARNING"."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.WARNING


def configure_logging(
    level: Union[int, str] = logging.WARNING,
    json_format: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Configure the harp logger tree, replacing any earlier handler.

    Args:
        level: Logging level as a number or name
        json_format: Emit JSON lines instead of human-readable text
        stream: Destination, stderr by default
    """
    level = resolve_level(level)
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if json_format else HostFormatter())
    root.addHandler(handler)
    return root
