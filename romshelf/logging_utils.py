"""Logging helpers shared across romshelf."""

import logging

# Between INFO (20) and WARNING (30)
SUCCESS = 25

logging.addLevelName(SUCCESS, 'SUCCESS')


def log_success(logger: logging.Logger, message: str) -> None:
    """Log a message at SUCCESS level."""
    logger.log(SUCCESS, message)
