"""Logging configuration for stdp-detect sessions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from stdp_detect.errors import ConfigurationError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[Union[str, Path]] = None,
    console: bool = True,
    log_file: str = "stdp_detect.log",
) -> logging.Logger:
    """Attach handlers to the ``stdp_detect`` logger.

    Handlers added by a previous call are replaced, so calling this again
    (in a worker process, for instance) does not duplicate output.

    Args:
        level: Minimum logging level (name or number)
        log_dir: Directory for a log file, or None for no file output
        console: Whether to log to stderr
        log_file: Name of the log file inside ``log_dir``

    Returns:
        The configured package logger

    Raises:
        ConfigurationError: If ``level`` is not a known level name
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ConfigurationError(f"Unknown log level '{level}'")
        level = resolved

    logger = logging.getLogger("stdp_detect")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
