"""
Logging setup for the calculators and their front ends.

Format: [TIMESTAMP] [LEVEL] [MODULE:FUNCTION:LINE] MESSAGE
Level comes from the LOG_LEVEL environment variable (default INFO).
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from typing import Optional


class StructuredFormatter(logging.Formatter):
    """Single-line formatter with timestamp, level and call site."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        location = f"{record.module}:{record.funcName}:{record.lineno}"
        msg = f"[{timestamp}] [{record.levelname:8s}] [{location}] {record.getMessage()}"
        if record.exc_info:
            msg += f"\n{self.formatException(record.exc_info)}"
        return msg


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Return a logger writing structured lines to stderr.

    Parameters
    ----------
    name : str
        Logger name, usually ``__name__``.
    level : str, optional
        ``DEBUG``, ``INFO``, ``WARNING`` or ``ERROR``. Defaults to the
        ``LOG_LEVEL`` environment variable, then ``INFO``.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, level, logging.INFO)
    logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger
