"""Structured logging for the counting core.

Records are written as JSON lines to ``DATA_DIR/logs/tasbih.log`` and as plain
text to the console. Inside a Flask request every record is stamped with the
request id, method, matched route and caller; the correlation ids the services
pass through ``extra=`` (session, goal, offline event, job) are lifted to
top-level keys so log lines can be joined with the event log and metrics.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path

from flask import g, has_request_context, request

from .config import BaseConfig

LOG_FILENAME = "tasbih.log"

# Promoted to top-level JSON keys, in this order.
CONTEXT_FIELDS = (
    "request_id",
    "method",
    "endpoint",
    "user_id",
    "session_id",
    "goal_id",
    "offline_id",
    "job_id",
)

_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class RequestContextFilter(logging.Filter):
    """Stamp records emitted during a request with who and what is being served.

    Values passed explicitly through ``extra=`` win over the request's.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not has_request_context():
            return True
        rule = request.url_rule.rule if request.url_rule is not None else request.path
        for name, value in (
            ("request_id", g.get("request_id")),
            ("method", request.method),
            ("endpoint", rule),
            ("user_id", g.get("user_id")),
        ):
            if value is not None and getattr(record, name, None) is None:
                setattr(record, name, value)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record; unknown ``extra`` keys go under ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and key not in CONTEXT_FIELDS
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable lines with a short ``[req user]`` suffix when known."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        tags = [
            f"{name}={getattr(record, name)}"
            for name in ("request_id", "user_id", "offline_id", "job_id")
            if getattr(record, name, None) is not None
        ]
        return f"{line} [{' '.join(tags)}]" if tags else line


def setup_logging(config: BaseConfig) -> logging.Logger:
    """Install console and rotating JSON file handlers on the ``tasbih`` logger.

    Safe to call once per app factory run; earlier handlers are replaced.
    """
    logs_dir = Path(config.DATA_DIR) / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    level = logging.getLevelName(getattr(config, "LOG_LEVEL", "INFO"))
    if not isinstance(level, int):
        level = logging.INFO

    package_logger = logging.getLogger("tasbih")
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    context_filter = RequestContextFilter()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level if config.DEV_MODE else max(level, logging.WARNING))
    console_handler.setFormatter(
        ConsoleFormatter(
            fmt="[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
            datefmt="%H:%M:%S" if config.DEV_MODE else "%Y-%m-%d %H:%M:%S",
        )
    )
    console_handler.addFilter(context_filter)
    package_logger.addHandler(console_handler)

    log_file = logs_dir / LOG_FILENAME
    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(JSONFormatter())
    file_handler.addFilter(context_filter)
    package_logger.addHandler(file_handler)

    package_logger.info("Logging initialized", extra={"log_file": str(log_file), "dev_mode": config.DEV_MODE})
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``tasbih`` namespace, e.g. ``get_logger("sync")``."""
    return logging.getLogger(f"tasbih.{name}")
