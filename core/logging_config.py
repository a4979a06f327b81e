# core/logging_config.py
import logging

from core.config import settings

LOGGER_NAME = "vendor_portal"


def configure_portal_logger(level: str = settings.LOG_LEVEL) -> logging.Logger:
    """
    One stream handler on the "vendor_portal" logger.
    Access decisions, relationship lookups and audit write failures all
    report through it.
    """
    portal_logger = logging.getLogger(LOGGER_NAME)

    # uvicorn --reload re-imports this module
    if not portal_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(settings.LOG_FORMAT))
        portal_logger.addHandler(handler)

    portal_logger.setLevel(level.upper())
    return portal_logger


logger = configure_portal_logger()
