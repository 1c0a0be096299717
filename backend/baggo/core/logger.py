# backend/baggo/core/logger.py

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from baggo.core.config_loader import settings


LOG_DIR = Path(__file__).resolve().parents[2] / "logs"
LOG_DIR.mkdir(parents=True, exist_ok=True)
LOG_FILE = LOG_DIR / "baggo.log"

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 5


def _build_handlers():
    formatter = logging.Formatter(LOG_FORMAT)

    # file keeps the configured level, console shows everything
    rotating = RotatingFileHandler(LOG_FILE, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    rotating.setLevel(settings.log_level.upper())

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG)

    for handler in (rotating, console):
        handler.setFormatter(formatter)
    return rotating, console


logger = logging.getLogger("baggo")
logger.setLevel(logging.DEBUG)

# uvicorn --reload imports this module more than once
if not logger.handlers:
    for _handler in _build_handlers():
        logger.addHandler(_handler)
