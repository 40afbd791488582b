import logging
import sys
from typing import Optional

LOGGER_NAME = "pocket"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
DATE_FORMAT = "%H:%M:%S"

logger = logging.getLogger(LOGGER_NAME)


def setup_logging(level: Optional[str] = None) -> None:
    """Send log records to stderr so stdout stays clean for command output.

    The pocket_api package logs under its own module names; both trees get
    the same handler and level.
    """
    level_value = getattr(logging, str(level or "INFO").upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    for name in (LOGGER_NAME, "pocket_api"):
        target = logging.getLogger(name)
        target.handlers[:] = [handler]
        target.setLevel(level_value)
        target.propagate = False


def log_debug(message: str) -> None:
    logger.debug(message)


def log_info(message: str) -> None:
    logger.info(message)


def log_success(message: str) -> None:
    logger.info(f"✅ {message}")


def log_warning(message: str) -> None:
    logger.warning(f"⚠️ {message}")


def log_error(message: str) -> None:
    logger.error(f"❌ {message}")
