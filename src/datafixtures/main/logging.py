"""Logging for the fixtures tooling.

Commands print their own progress to stdout, so log output always goes to
stderr: JSON lines when ``JSON_LOGS`` is on (the default), rich formatted
lines otherwise.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

from datafixtures.main.command_context import get_command_context
from datafixtures.main.config import get_loglevel


JSON_LOGS_ENABLED = os.getenv("JSON_LOGS", "true").lower() in {"1", "true", "yes", "on"}

# Attributes every LogRecord carries; anything else arrived through ``extra``
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}


class ContextJSONFormatter(logging.Formatter):
    """One JSON object per record, carrying the running command's context."""

    def format(self, record: logging.LogRecord) -> str:
        log: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        # command, entity_manager, shard
        for key, value in get_command_context().items():
            log.setdefault(key, value)

        for key, value in vars(record).items():
            if key in _RECORD_ATTRS or key.startswith("_") or value is None:
                continue
            log.setdefault(key, value)

        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log["stack"] = record.stack_info

        return json.dumps(log, default=str)


# SQLAlchemy stays at WARNING regardless of LOGLEVEL
for logger_name in ("sqlalchemy.engine", "sqlalchemy.pool", "sqlalchemy.orm", "sqlalchemy.dialects"):
    sa_logger = logging.getLogger(logger_name)
    sa_logger.setLevel(logging.WARNING)
    sa_logger.propagate = False


def build_handler(json_logs: bool = JSON_LOGS_ENABLED) -> logging.Handler:
    if json_logs:
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(ContextJSONFormatter())
        return handler

    return RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        markup=False,
        show_path=True,
    )


class SimpleLogger(logging.Logger):
    def __init__(self, name="main", level=logging.WARNING, json_logs=JSON_LOGS_ENABLED):
        logging.Logger.__init__(self, name, level)
        handler = build_handler(json_logs)
        handler.setLevel(level)
        self.addHandler(handler)


def get_logger(module_name: str):
    # If we don't add a handler manually one will be created for us
    return SimpleLogger(name=module_name, level=get_loglevel())
