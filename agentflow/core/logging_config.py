"""Logging setup for the service and the CLI.

Every record passes through ``ContextFilter`` so the active run, session and
agent travel with it. The console prints colored one-liners locally and
JSON lines in production; the optional rotating file always gets JSON.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from agentflow.core.config import Settings, settings
from agentflow.core.context import get_logging_context

LOG_DIR = Path.cwd() / "logs"
LOG_FILE = LOG_DIR / "agentflow.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUP_COUNT = 5

QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "openai", "langchain", "langgraph")

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"

# Attributes every LogRecord has; anything else arrived via ``extra`` or the filter
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_ATTRS and value is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with run context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}.{record.funcName}:{record.lineno}",
            **_extra_fields(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ReadableFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelname, RESET)
        head = f"{color}{self.formatTime(record, '%H:%M:%S')} [{record.levelname:8}]{RESET}"
        line = f"{head} {record.name}: {record.getMessage()}"

        extras = _extra_fields(record)
        if extras:
            line += " | " + " ".join(f"{key}={value}" for key, value in extras.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextFilter(logging.Filter):
    """Copy request, run, session and agent ids from context variables onto records.

    Values passed explicitly through ``extra`` win over the context.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in get_logging_context().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def _console_handler(json_output: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else ReadableFormatter())
    return handler


def _file_handler(path: Path) -> logging.Handler | None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as e:
        logging.warning(f"Could not enable file logging at {path}: {e}")
        return None

    handler.setFormatter(JSONFormatter())
    handler.setLevel(logging.DEBUG)
    return handler


def setup_logging(
    config: Settings | None = None, *, enable_file_logging: bool | None = None
) -> None:
    """Install handlers on the root logger, replacing any existing ones.

    Args:
        config: Settings to read ``ENVIRONMENT``, ``DEBUG`` and ``LOG_TO_FILE``
            from. Defaults to the global settings.
        enable_file_logging: Overrides ``LOG_TO_FILE`` when given.
    """
    config = config or settings
    if enable_file_logging is None:
        enable_file_logging = config.LOG_TO_FILE

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG if config.DEBUG else logging.INFO)

    handlers = [_console_handler(json_output=config.ENVIRONMENT == "production")]
    if enable_file_logging:
        file_handler = _file_handler(LOG_FILE)
        if file_handler is not None:
            handlers.append(file_handler)

    context_filter = ContextFilter()
    for handler in handlers:
        handler.addFilter(context_filter)
        root.addHandler(handler)

    if len(handlers) > 1:
        logging.info(f"File logging enabled: {LOG_FILE}")

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
