"""
Logging utilities for the storm track report.

This module provides shared functions for setting up logging
consistently across the project.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    name: str,
    log_dir: Union[str, Path] = "logs",
    level: Union[int, str] = logging.INFO,
    include_console: bool = True,
) -> logging.Logger:
    """
    Setup logging configuration for a module or package.

    Module loggers created with ``logging.getLogger(__name__)`` below
    ``name`` propagate to the handlers installed here.

    Args:
        name: Logger name (usually the package name)
        log_dir: Directory to store log files
        level: Logging level, as an int or a level name such as "DEBUG"
        include_console: Whether to include console handler

    Returns:
        Configured logger instance
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_path / f"{name.replace('.', '_')}_{timestamp}.log"

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers to avoid duplicates on repeated runs
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if include_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
