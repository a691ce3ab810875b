import logging
import sys
from typing import Optional

from bitbucket_cloud.config.settings import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def create_logger(service_name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Create a named logger with a single console handler.

    Args:
        service_name: Logger name
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to the configured log level.

    Returns:
        Configured logger
    """
    if level is None:
        level = get_settings().log_level

    logger = logging.getLogger(service_name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Calling twice for the same name must not duplicate output
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
