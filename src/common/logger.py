from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import Optional


ENV_LOG_LEVEL = "WILL_LOG_LEVEL"
ROOT_LOGGER = "wills"


def get_logger(name: str = ROOT_LOGGER, level: Optional[str | int] = None) -> logging.Logger:
    """Return a logger writing JSON lines to stdout with UTC timestamps.

    The handler is attached once per logger name. Library modules log through
    `module_logger(__name__)`, which nests them under `wills` so a single
    `get_logger()` call at the entry point configures all of them.
    """
    if level is None:
        level = os.environ.get(ENV_LOG_LEVEL) or logging.INFO
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            fmt=json.dumps(
                {
                    "ts": "%(asctime)s",
                    "level": "%(levelname)s",
                    "name": "%(name)s",
                    "msg": "%(message)s",
                }
            ),
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def module_logger(module: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{module}")
