"""
Настройка журналирования для пакета hotel_booking.
"""

import logging

from .config import Settings

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


def configure_logging(settings: Settings) -> logging.Logger:
    """Настраивает корневой логгер пакета и возвращает его."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logger = logging.getLogger("hotel_booking")
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
