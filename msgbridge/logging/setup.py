"""Logging configuration for the gateway."""

import logging
import sys

LOGGER_NAME = "msgbridge"


def setup_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Set up the gateway logger with a stdout handler and timestamped format."""
    logger = logging.getLogger(LOGGER_NAME)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    # Clear any existing handlers so repeated setup doesn't duplicate lines
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Propagate to root so test capture (caplog) sees our records
    logger.propagate = True

    return logger


logger = logging.getLogger(LOGGER_NAME)
