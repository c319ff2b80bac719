"""logger.py - Package-wide logger factory for exthash."""

from __future__ import annotations

import logging
import os

ROOT_LOGGER_NAME = "exthash"
LOG_LEVEL_ENV = "EXTHASH_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured = False


def _configure_root() -> logging.Logger:
    global _configured
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if _configured:
        return root
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    root.setLevel(getattr(logging, level_name, logging.WARNING))
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    _configured = True
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the ``exthash`` namespace.

    The package logger gets one stream handler the first time this is
    called; its level comes from ``EXTHASH_LOG_LEVEL``.
    """
    _configure_root()
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
