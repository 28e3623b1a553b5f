"""Logger setup for the vivecal command line tool."""

import logging
import os
import sys
from typing import Optional


def setup_logger(name: str = "vivecal", level: Optional[str] = None,
                 log_file: Optional[str] = None) -> logging.Logger:
    """
    Setup a logger with a console handler and an optional file handler.

    Args:
        name: Name of the logger (the package logger by default)
        level: Logging level (DEBUG, INFO, WARNING, ERROR); falls back to
            the LOG_LEVEL environment variable, then INFO
        log_file: Optional path of a log file

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    level = level or os.getenv("LOG_LEVEL", "INFO")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Check if handlers already exist to avoid duplicates
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
