"""
Utilities: logging setup driven by verbosity, and secret masking.

Verbosity -> logger level:
  minimal / normal -> WARNING   (no diagnostics)
  detailed         -> DEBUG
  diagnostic       -> TRACE     (request/response bodies)

Diagnostics always go to the stream handed in (stderr in practice),
never to stdout.
"""

from __future__ import annotations

import logging
from typing import Optional, TextIO

from .config import APP_TITLE
from .settings import Verbosity

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_LEVELS = {
    Verbosity.MINIMAL: logging.WARNING,
    Verbosity.NORMAL: logging.WARNING,
    Verbosity.DETAILED: logging.DEBUG,
    Verbosity.DIAGNOSTIC: TRACE,
}

logger = logging.getLogger(APP_TITLE)


def setup_logging(verbosity: Verbosity, stream: TextIO) -> logging.Logger:
    """Attach a single stream handler to the askai logger and return it."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(_LEVELS[verbosity])
    logger.propagate = False
    return logger


def mask_secret(value: Optional[str]) -> str:
    if not value:
        return "<none>"
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}…{value[-4:]} (len={len(value)})"
