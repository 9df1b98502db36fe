"""
Logging Configuration
Sets up the 'imagemeasure' logger: console output plus an optional rotating
log file kept beside the autosave document, so a crash report can include
the last sessions.
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from imagemeasure.config import LOG_BACKUP_COUNT, LOG_MAX_BYTES


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> Optional[str]:
    """
    Configures the logger of the 'imagemeasure' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path of a rotating log file.

    Returns:
        The log file actually in use, or None when only the console is used
        (no path given, or the file could not be opened).
    """
    logger = logging.getLogger("imagemeasure")
    logger.setLevel(level)

    # setup_logging may run again (tests, restarted window)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    active_file = None
    if log_file:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding='utf-8'
            )
        except OSError as e:
            logger.warning(f"Cannot open log file '{log_file}': {e}")
        else:
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            active_file = log_file

    if active_file:
        logger.info(f"Logging initialized (file: {active_file}).")
    else:
        logger.info("Logging initialized.")
    return active_file
