"""Logging setup for scripts and embedding applications.

Library modules only create `logging.getLogger(__name__)`; nothing is printed
until an application calls `configure_logging()`.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union


PROJECT_LOGGERS = ("scheduling", "database", "utils")

_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def configure_logging(level: Optional[Union[int, str]] = None) -> None:
    """Attach one stdout handler to the project loggers.

    `level` falls back to the `TEMPO_LOG_LEVEL` env var, then INFO. Calling it
    again only changes the level.
    """

    if level is None:
        level = os.getenv("TEMPO_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO

    for name in PROJECT_LOGGERS:
        logger = logging.getLogger(name)
        logger.setLevel(level)

        # Prevent duplicate handlers on repeated calls
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
            logger.addHandler(handler)
