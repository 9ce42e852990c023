"""
BigPdfMerge - Logger Module

This module sets up logging for the application.
"""

import logging

# Default values if config is not available
DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOGGER_NAME = "BigPdfMerge"


def setup_logger(
    log_level: int | None = None,
    log_format: str | None = None,
    logger_name: str | None = None,
) -> logging.Logger:
    """Set up and configure the application logger.

    Args:
        log_level: Logging level to use (default: config.LOG_LEVEL)
        log_format: Logging format string (default: config.LOG_FORMAT)
        logger_name: Name for the logger (default: config.LOGGER_NAME)

    Returns:
        A configured Logger instance
    """
    try:
        from bigpdfmerge import config
    except ImportError:
        config = None

    if log_level is None:
        log_level = getattr(config, "LOG_LEVEL", DEFAULT_LOG_LEVEL)
    if log_format is None:
        log_format = getattr(config, "LOG_FORMAT", DEFAULT_LOG_FORMAT)
    if logger_name is None:
        logger_name = getattr(config, "LOGGER_NAME", DEFAULT_LOGGER_NAME)

    # Configure basic logging settings
    logging.basicConfig(level=log_level, format=log_format)

    app_logger = logging.getLogger(logger_name)
    app_logger.setLevel(log_level)
    return app_logger


def set_log_level(level: int) -> None:
    """Change the level of the application logger and the root handler."""
    logging.getLogger().setLevel(level)
    logger.setLevel(level)


# Create a singleton logger instance
logger = setup_logger()
