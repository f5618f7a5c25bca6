"""
Central logging configuration.

Library modules only call get_logger(); handlers are attached once,
by the host (CLI or editor integration), through configure_logging().
"""
from __future__ import annotations

import logging
import os
from typing import Optional

ROOT_LOGGER = "dabcd"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
ENV_LEVEL = "DABCD_LOG_LEVEL"

_HANDLER: Optional[logging.Handler] = None


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger for module `name`."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def _level_from_env(default: int) -> int:
    raw = os.environ.get(ENV_LEVEL, "").strip().upper()
    if not raw:
        return default
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else default


def configure_logging(level: Optional[int] = None) -> logging.Logger:
    """
    Attach a single stderr handler to the package logger.

    Calling this again only adjusts the level.
    Explicit `level` beats DABCD_LOG_LEVEL, which beats WARNING.
    """
    global _HANDLER

    logger = logging.getLogger(ROOT_LOGGER)
    if level is None:
        level = _level_from_env(logging.WARNING)
    logger.setLevel(level)

    if _HANDLER is None:
        _HANDLER = logging.StreamHandler()
        _HANDLER.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(_HANDLER)
    _HANDLER.setLevel(level)

    return logger
