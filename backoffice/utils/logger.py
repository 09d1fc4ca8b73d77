"""
Logging configuration

One stdout handler lives on the "backoffice" package logger; module loggers
(get_logger or logging.getLogger(__name__)) propagate to it.
"""
import logging
import sys
from typing import Optional

from backoffice.config import get_settings

PACKAGE_LOGGER = "backoffice"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach the stdout handler once and set the package level"""
    settings = get_settings()
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)

    level = level or settings.LOG_LEVEL or ("DEBUG" if settings.DEBUG else "INFO")
    package_logger.setLevel(level.upper())
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Logger nested under the package logger (scripts run as __main__ included)"""
    configure_logging()
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
