"""
Logging configuration for Heatlog entry points.

Library code logs through the standard logging module; everything is routed
into loguru and written as "<timestamp>: <message>".
"""

import logging
import sys

from loguru import logger

LOG_FORMAT = "{time:MMM DD HH:mm:ss}: {message}"


class InterceptHandler(logging.Handler):
    """Send standard logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller that issued the logging call
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(verbose: bool = False) -> None:
    """Configure loguru on stderr and capture standard logging."""
    level = "DEBUG" if verbose else "INFO"

    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level, backtrace=verbose, diagnose=False)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # Keep request libraries quiet unless debugging them
    for noisy in ("urllib3", "requests"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
