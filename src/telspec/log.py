"""Logging configuration for telspec.

Library modules only create `logging.getLogger(__name__)` loggers and
never add handlers. Applications that want to see search reports
("No baselines match 1:BR.") call configure_logging() once.

Usage:
    from telspec.log import configure_logging

    configure_logging(level="DEBUG")
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

_root_logger_name = "telspec"

_FORMAT = "%(levelname)-8s [%(name)s] %(message)s"


def configure_logging(*, level: Optional[str] = None, stream=None) -> logging.Logger:
    """Configure the telspec logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to
               TELSPEC_LOG_LEVEL, or WARNING if that is unset.
        stream: Stream for the console handler (default: stderr).

    Returns:
        The package logger. Calling this again replaces its handlers.
    """
    if level is None:
        level = os.environ.get("TELSPEC_LOG_LEVEL", "WARNING")
    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger(_root_logger_name)
    logger.setLevel(numeric_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
