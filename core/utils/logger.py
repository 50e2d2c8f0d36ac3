"""
Logging configuration for both services.
"""
import logging
import os
import sys
from typing import Optional

DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
AUDIT_LOGGER_NAME = 'portus.audit'


def setup_logger(
    name: str,
    level: Optional[int] = None,
    log_format: Optional[str] = None
) -> logging.Logger:
    """
    Set up and configure a logger.

    Args:
        name: Logger name (typically __name__ of the module)
        level: Logging level (default: LOG_LEVEL env var, else INFO)
        log_format: Custom log format string

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    if level is None:
        level = logging.getLevelName(os.environ.get('LOG_LEVEL', 'INFO').upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(log_format or DEFAULT_LOG_FORMAT))
    logger.addHandler(handler)

    # Each configured logger owns its handler; don't echo through parents
    logger.propagate = False

    return logger


app_logger = setup_logger('portus')
