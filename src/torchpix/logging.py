"""
Logging utilities for torchpix.

Provides consistent logging and error handling across the library.
"""

import logging
import os
import sys
from functools import wraps

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Configure torchpix logger
logger = logging.getLogger("torchpix")
logger.setLevel(
    _LEVELS.get(os.environ.get("TORCHPIX_LOG_LEVEL", "WARNING").upper(), logging.WARNING)
)

# Create console handler if none exists
if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_errors(func):
    """Decorator to log exceptions before re-raising."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            logger.error(f"Error in {func.__name__}: {str(e)}")
            raise

    return wrapper


def set_log_level(level: str):
    """Set logging level for torchpix."""
    logger.setLevel(_LEVELS.get(level.upper(), logging.WARNING))


def log_sentinel(operation: str, value, nside: int):
    """Log a compatibility-boundary failure reported in-band as -1."""
    logger.debug(f"{operation}: invalid input {value!r} for nside={nside}, returning -1")


def log_device_fallback(operation: str, device: str):
    """Log a computation rerouted to CPU because the device lacks float64."""
    logger.debug(f"{operation}: {device} lacks float64, computing on cpu")
