"""Logging configuration for para_publisher.

Modules log through the standard library:

    import logging
    log = logging.getLogger(__name__)

The level is read from the PARA_PUBLISHER_LOG_LEVEL environment variable
(DEBUG, INFO, WARNING, ERROR; default INFO).
"""

import logging
import os
import sys

LOGGER_NAME = "para_publisher"
LOG_LEVEL_ENV = "PARA_PUBLISHER_LOG_LEVEL"


def configure_logging(verbose: bool = False) -> None:
    """Configure logging for the para_publisher package.

    Call this once at application startup. Subsequent calls are no-ops.

    Args:
        verbose: Force DEBUG level regardless of the environment
    """
    root_logger = logging.getLogger(LOGGER_NAME)

    if root_logger.handlers:
        return

    if verbose:
        level = logging.DEBUG
    else:
        level_name = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
        level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt="[%(levelname)s] %(name)s: %(message)s"))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # Avoid duplicate messages through the root logger
    root_logger.propagate = False
