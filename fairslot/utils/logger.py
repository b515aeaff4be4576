"""Process-wide logging setup for the planning core."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from fairslot.utils.config import get_settings


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
PACKAGE_LOGGER = "fairslot"

_LOGGER_INITIALIZED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Install the pipe-separated log format once and set the package log level.

    The level is applied to the `fairslot` logger as well as the root logger,
    so it still holds when a host application configured logging first and
    `basicConfig` does nothing.
    """
    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    resolved_level = (level or get_settings().log_level).upper()
    logging.basicConfig(level=resolved_level, format=LOG_FORMAT, stream=sys.stdout)
    logging.getLogger(PACKAGE_LOGGER).setLevel(resolved_level)
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
