"""
Structured Logging Setup

Consistent logging configuration for the scheduler and the runner.
Uses JSON format for structured logs unless REALSCHED_LOG_FORMAT says otherwise.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

# LogRecord attributes that are not user supplied "extra" fields
_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "service",
    "message", "taskName",
))


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", "unknown"),
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ServiceLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds service name to all logs"""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs.setdefault("extra", {})
        kwargs["extra"]["service"] = self.extra.get("service", "unknown")
        return msg, kwargs


def _make_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return JsonFormatter()
    return logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def setup_logging(
    service_name: str,
    log_level: str = "INFO",
    json_format: bool = True,
) -> logging.Logger:
    """
    Set up structured logging for a service.

    Args:
        service_name: Name of the service (e.g., "scheduler", "cli")
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format (True for production, False for dev)

    Returns:
        Configured logger instance
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(f"realsched.{service_name}")
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)

    handler.setFormatter(_make_formatter(json_format))
    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


def get_service_logger(service_name: str, default_level: str = "INFO") -> ServiceLoggerAdapter:
    """
    Get a logger adapter with service context.

    Level and format are read from REALSCHED_LOG_LEVEL and
    REALSCHED_LOG_FORMAT; default_level applies when the level is unset.
    """
    log_level = os.environ.get("REALSCHED_LOG_LEVEL", default_level)
    json_format = os.environ.get("REALSCHED_LOG_FORMAT", "json").lower() == "json"

    logger = setup_logging(service_name, log_level, json_format)
    return ServiceLoggerAdapter(logger, {"service": service_name})


def reconfigure_logging(log_level: str, json_format: bool | None = None) -> None:
    """
    Change level (and optionally format) of every realsched logger.

    Used by the runner to apply its configuration to loggers that were
    created at import time.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    for name, logger in logging.Logger.manager.loggerDict.items():
        if not name.startswith("realsched.") or not isinstance(logger, logging.Logger):
            continue
        logger.setLevel(numeric_level)
        for handler in logger.handlers:
            handler.setLevel(numeric_level)
            if json_format is not None:
                handler.setFormatter(_make_formatter(json_format))
