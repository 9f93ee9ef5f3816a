"""
Structured logging configuration for Daily Git Brief.

Provides JSON or plain-text output on stdout, and a context manager that
attaches fields (run id, target date) to every record logged in its scope.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict


# Context variable for run / request tracking
log_fields: ContextVar[Dict[str, Any]] = ContextVar("log_fields", default={})


# ============================================================================
# JSON Formatter
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Each record becomes one JSON object with timestamp, level, logger,
    message and source location, plus any fields bound by log_context.
    """

    def format(self, record: logging.LogRecord) -> str:
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
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        ctx = log_fields.get()
        if ctx:
            log_data["context"] = ctx

        return json.dumps(log_data, default=str)


# ============================================================================
# Logging Setup
# ============================================================================

def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting (True) or plain text (False)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            "[%(asctime)s] %(levelname)s [%(name)s:%(lineno)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Set levels for noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    logging.info(f"Logging configured: level={level}, json={json_format}")


# ============================================================================
# Context Management
# ============================================================================

class log_context:
    """
    Context manager for adding fields to all log records within a scope.

    Example:
        with log_context(run_id="a1b2", date="2024-01-15"):
            logger.info("Collecting")
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self.token = None

    def __enter__(self):
        current = log_fields.get().copy()
        current.update(self.context)
        self.token = log_fields.set(current)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        log_fields.reset(self.token)
