"""
Logging configuration for the HF band simulation.

Feed fetches and scheduled refreshes run on worker threads, so records carry
the thread name.
"""

import logging
import logging.handlers
import os
from typing import List, Optional

from hf_band_sim.config import get_config

PACKAGE_LOGGER = 'hf_band_sim'

LOG_FORMAT = '%(asctime)s - %(name)s [%(threadName)s] - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Chatty HTTP internals used by the feed providers
THIRD_PARTY_LOGGERS = ('urllib3', 'requests')


def _resolve_level(level: Optional[str], debug: bool) -> int:
    if level is None:
        return logging.DEBUG if debug else logging.INFO
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        logging.getLogger(PACKAGE_LOGGER).warning(f"Unknown log level '{level}', using INFO")
        return logging.INFO
    return resolved


def _build_handlers(level: int, log_file: Optional[str], max_bytes: int,
                    backup_count: int) -> List[logging.Handler]:
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count
        ))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    name: str = PACKAGE_LOGGER,
    level: Optional[str] = None,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging for the simulation.

    Args:
        name: Logger name
        level: Logging level name; defaults to LOG_LEVEL, then DEBUG/INFO
        log_file: Optional log file path; defaults to LOG_FILE

    Returns:
        Configured logger instance
    """
    config = get_config()

    resolved = _resolve_level(level or config.LOG_LEVEL, config.DEBUG)
    if log_file is None:
        log_file = config.LOG_FILE

    logger = logging.getLogger(name)
    logger.setLevel(resolved)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    for handler in _build_handlers(resolved, log_file, config.LOG_MAX_BYTES, config.LOG_BACKUP_COUNT):
        logger.addHandler(handler)

    if resolved > logging.DEBUG:
        for noisy in THIRD_PARTY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """Get a logger, configuring the package logger on first use."""
    root_name = name.split('.')[0]
    if not logging.getLogger(root_name).handlers:
        setup_logging(root_name)

    return logging.getLogger(name)
