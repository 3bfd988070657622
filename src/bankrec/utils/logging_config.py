"""Logging configuration for the bankrec command line."""

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None) -> None:
    """Configure root logging for the application.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path of an extra log file. Falls back to the
            BANKREC_LOG_FILE environment variable.
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: '{level}'")

    if log_file is None:
        log_file = os.environ.get("BANKREC_LOG_FILE")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
