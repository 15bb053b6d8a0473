"""
Logging setup for processes embedding the data-access layer.
"""

from __future__ import annotations

import logging

from . import config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str | None = None) -> None:
    """
    Configure the root logger with a console handler.

    Does nothing when the root logger already has handlers, so calling it from
    tests or repeated app factories is safe.
    """
    root = logging.getLogger()
    if root.handlers:
        return None

    level_name = (level or config.log_level()).upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
