"""Logging configuration for the shortlink service."""

import logging
import sys


def setup_logging(level: str = "INFO", json_format: bool = False) -> logging.Logger:
    """Setup logging for the ``shortlink_app`` logger tree.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Whether to emit one JSON object per line

    Returns:
        Configured package logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("shortlink_app")
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    if json_format:
        formatter = logging.Formatter(
            '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
            '"logger": "%(name)s", "message": "%(message)s"}'
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger
