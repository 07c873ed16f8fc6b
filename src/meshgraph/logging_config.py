"""Logging configuration for applications built on the ``meshgraph`` package.

The library itself only creates module loggers; call :func:`setup_logging`
from an entry point (the CLI does) to get output.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """Configure the ``meshgraph`` namespace logger.

    Args:
        level: Logging level (e.g. ``logging.DEBUG``).
        log_file: Optional path to also write the log to.
    """
    logger = logging.getLogger("meshgraph")
    logger.setLevel(level)

    # avoid duplicate output when called twice
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(FORMAT, datefmt="%H:%M:%S")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
