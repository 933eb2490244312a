# wishwall/utils/logger.py
# File-backed "access" and "error" logs for connection lifecycle events.

import logging
import os
import traceback

from wishwall import config

os.makedirs(config.LOGS_PATH, exist_ok=True)

FILE_FORMAT = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", "%Y-%m-%d %H:%M:%S")


def setup_logger(name: str, filename: str, level: int) -> logging.Logger:
    """Attach a single file handler under LOGS_PATH to the named logger."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # pool re-creation must not stack handlers
    if not logger.handlers:
        handler = logging.FileHandler(os.path.join(config.LOGS_PATH, filename), encoding="utf-8")
        handler.setFormatter(FILE_FORMAT)
        logger.addHandler(handler)

    return logger


access_logger = setup_logger("access", "access.log", logging.INFO)
error_logger = setup_logger("error", "error.log", logging.ERROR)


def log_info(message: str) -> None:
    access_logger.info(message)


def log_exception(e: Exception, context: str = "") -> None:
    """Write the active traceback for ``e`` to error.log."""
    where = f" in {context}" if context else ""
    error_logger.error(f"{type(e).__name__}{where}: {e}\n{traceback.format_exc()}")
