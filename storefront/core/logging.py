"""
Logging configuration for the application.

Application code logs through loguru. The mailer and third-party libraries
log through the standard ``logging`` module; those records are forwarded
to loguru so everything lands in the same sinks.
"""

import inspect
import logging
import sys

from loguru import logger

from storefront.core.config import settings

CONSOLE_FORMAT = (
    "<level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>"
    " - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


class InterceptHandler(logging.Handler):
    """Re-emit standard library log records through loguru."""

    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Report the caller that issued the record, not the logging module
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging():
    """Configure logging for the application."""
    logger.remove()

    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=settings.LOG_LEVEL, colorize=True)

    logger.add(
        settings.LOG_FILE,
        format=FILE_FORMAT,
        level=settings.LOG_LEVEL,
        rotation="50 MB",
        retention="10 days"
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = [InterceptHandler()]
        logging.getLogger(name).propagate = False

    return logger
