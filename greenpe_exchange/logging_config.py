import logging
import sys

from greenpe_exchange.settings import settings

LOGGER_NAME = "greenpe_exchange"

logger = logging.getLogger(LOGGER_NAME)

if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(handler)

logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))


def set_logger_and_children_level(level: int | str) -> None:
    """Set the level of the package logger and every logger below it."""
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    logger.setLevel(level)
    for name, child in logging.Logger.manager.loggerDict.items():
        if name.startswith(f"{LOGGER_NAME}.") and isinstance(child, logging.Logger):
            child.setLevel(level)
