"""
Logging setup for the EcoCoach backend.
Console output only; the deployment captures stdout.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(name: str = "ecocoach", level: str = "INFO") -> logging.Logger:
    """
    Configure the package logger.

    Args:
        name: Logger name (child modules inherit its handlers)
        level: Level name such as "INFO" or "DEBUG"

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers so repeated calls do not duplicate output
    logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
