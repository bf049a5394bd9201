# backend/voicepost/core/logging_config.py
"""Logging configuration for the VoicePost backend."""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "voicepost"


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Set up the ``voicepost`` logger.

    Module loggers (``logging.getLogger(__name__)``) live under this namespace
    and propagate to it.

    Args:
        level: Logging level name or number (default: INFO)
        log_file: Optional path of an additional debug-level log file

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Avoid adding handlers multiple times (uvicorn --reload, test re-imports)
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logger.addHandler(console_handler)

    if log_file:
        try:
            path = Path(log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning("Could not set up file logging: %s", e)

    return logger
