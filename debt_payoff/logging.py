"""Logging configuration for the debt payoff planner.

Log records go to stderr so that stdout carries only schedules, tables and
exported data.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Loggers of this project, set to the configured level.
PACKAGE_LOGGERS = ("debt_payoff", "debt_payoff_web")
# Library loggers held at WARNING whatever the configured level.
QUIET_LOGGERS = ("sqlalchemy", "werkzeug")

STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", format_type: str = "standard") -> None:
    """Install a single stderr handler on the root logger.

    Parameters
    ----------
    level : str
        Log level name; unknown names fall back to INFO.
    format_type : str
        "standard" for one readable line per record, "json" for one JSON
        object per record.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=STANDARD_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(log_level)

    for name in PACKAGE_LOGGERS:
        logging.getLogger(name).setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class JsonFormatter(logging.Formatter):
    """Render a record as one JSON object, stamped with the record's creation time in UTC."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
