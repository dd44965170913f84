from __future__ import annotations
import logging
import sys
from typing import Optional

LOGGER_NAME = "contractintel"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# PDF parser chatter on malformed files is not actionable
NOISY_LOGGERS = ["pypdf", "pypdf._reader", "pypdf._page"]

logger = logging.getLogger(LOGGER_NAME)


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a stderr handler to the package logger (idempotent)."""
    lvl = getattr(logging, (level or "INFO").upper(), logging.INFO)
    logger.setLevel(lvl)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stderr)
        h.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(h)
    logger.propagate = False
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.ERROR)
    return logger
