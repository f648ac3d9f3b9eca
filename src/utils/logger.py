"""Shared stdout logger for the matching engine."""

from __future__ import annotations

import logging
import sys

_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s"


def get_logger(name: str = "matching", level: int = logging.INFO) -> logging.Logger:
    """Return a configured logger, reusing handlers if one already exists."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))

    logger.addHandler(handler)
    logger.propagate = False
    return logger


def set_verbosity(verbose: bool) -> None:
    """Switch every logger under the ``matching`` namespace to DEBUG or INFO."""
    level = logging.DEBUG if verbose else logging.INFO
    get_logger().setLevel(level)
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("matching."):
            logging.getLogger(name).setLevel(level)
