"""Logging configuration for sketch2d."""

from __future__ import annotations

import logging
import os

LOG_LEVEL = os.getenv("SKETCH2D_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | None = None, name: str = "sketch2d") -> logging.Logger:
    """
    Attach a console handler to the package logger.

    Args:
        level: Log level name; defaults to ``SKETCH2D_LOG_LEVEL`` or INFO
        name: Logger name

    Returns:
        Configured logger instance
    """
    if level is None:
        level = LOG_LEVEL
    lvl = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(lvl)
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    for h in logger.handlers:
        h.setLevel(lvl)
    return logger
