"""
Logging Configuration
Sets up the package logger for pathcore and the command line tools.
"""
import logging
import sys
from typing import Optional, TextIO, Union


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None,
                  stream: Optional[TextIO] = None) -> None:
    """
    Configures the logger for the 'pathcore' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG or "DEBUG")
        log_file: Optional path to save logs to a file.
        stream: Console stream, stdout by default.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("pathcore")
    logger.setLevel(level)

    # Avoid duplicate handlers when called twice (tests, repeated CLI runs)
    if logger.hasHandlers():
        logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setLevel(level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized.")
