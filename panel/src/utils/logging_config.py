"""
Structured logging configuration for the panel backend.

JSON logs with file rotation in production, readable console output
everywhere else.

Loggers:
- api: HTTP requests, responses, exception handlers
- services: Association resolution, candidate listing, inline creation, form sessions
- db: Data store access and failures
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional


LOGGER_NAMES = ("api", "services", "db")

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """
    Formatter that renders each record as a single JSON object.

    Fields: timestamp, level, logger, message, module, function, line,
    exception (when present) and every key passed through ``extra``.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_data = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable formatter for development.

    Example: [2026-10-19 10:30:45] INFO - panel.services - Created post pst_01j...
    """

    def __init__(self):
        super().__init__(
            fmt="[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


def _get_log_level() -> int:
    """Read PANEL_LOG_LEVEL (default INFO)."""
    level_str = os.environ.get("PANEL_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def _get_log_dir() -> Path:
    """Read PANEL_LOG_DIR (default ./logs) and make sure it exists."""
    log_dir = Path(os.environ.get("PANEL_LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _is_production() -> bool:
    return os.environ.get("PANEL_ENV", "development").lower() == "production"


def configure_logging() -> Dict[str, logging.Logger]:
    """
    Configure the panel loggers.

    Production (PANEL_ENV=production) writes JSON to ``<log_dir>/<name>.log``
    with 10MB rotation and 5 backups. Any other environment writes to stdout.

    Returns:
        Dictionary mapping short logger names to Logger instances
    """
    log_level = _get_log_level()
    is_prod = _is_production()
    log_dir = _get_log_dir() if is_prod else None

    loggers = {}

    for logger_name in LOGGER_NAMES:
        logger = logging.getLogger(f"panel.{logger_name}")
        logger.setLevel(log_level)
        logger.propagate = False
        logger.handlers.clear()

        if is_prod:
            handler = logging.handlers.RotatingFileHandler(
                log_dir / f"{logger_name}.log",
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8"
            )
            handler.setFormatter(JSONFormatter())
        else:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(ConsoleFormatter())

        handler.setLevel(log_level)
        logger.addHandler(handler)
        loggers[logger_name] = logger

    return loggers


_loggers: Optional[Dict[str, logging.Logger]] = None


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger by short name.

    Args:
        name: One of "api", "services", "db"

    Raises:
        ValueError: If logger name is not recognized

    Example:
        >>> logger = get_logger("services")
        >>> logger.info("Listed candidates", extra={"target_type": "course"})
    """
    global _loggers

    if _loggers is None:
        _loggers = configure_logging()

    if name not in _loggers:
        raise ValueError(
            f"Unknown logger name: {name}. "
            f"Valid names: {', '.join(_loggers.keys())}"
        )

    return _loggers[name]


def init_logging() -> Dict[str, logging.Logger]:
    """(Re)initialize logging; called once on application startup."""
    global _loggers
    _loggers = configure_logging()
    return _loggers
