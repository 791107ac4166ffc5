"""Logging setup: loguru sinks plus routing of stdlib logging (werkzeug) into loguru."""

from __future__ import annotations

import logging
import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level:<8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Redirects standard logging into loguru while preserving caller info."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO", *, intercept_stdlib: bool = True) -> None:
    """Configure loguru for console logging and enable rangeserve's own messages.

    The library stays silent until an application calls this.
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), colorize=True, backtrace=True,
               diagnose=False, format=LOG_FORMAT)
    logger.enable("rangeserve")

    if intercept_stdlib:
        logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
