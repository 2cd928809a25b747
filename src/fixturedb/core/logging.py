"""Logging configuration for FixtureDB.

Everything logs through the loguru ``logger``. ``configure_logging`` is
called once by the entry points (the CLI callback); library use without it
keeps loguru's default stderr sink.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# Standard library loggers of the database stack
INTERCEPTED_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool")

_configured = False


def configure_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    serialize: bool = False,
) -> None:
    """Install the FixtureDB sinks, replacing loguru's defaults.

    Args:
        level: Level of the file sink (DEBUG, INFO, WARNING, ERROR)
        log_file: Rotating log file; no file sink when omitted
        serialize: Write the file sink as JSON lines
    """
    global _configured

    if _configured:
        return

    logger.remove()

    # stderr only gets warnings so test output stays readable
    logger.add(sys.stderr, format=LOG_FORMAT, level="WARNING", colorize=True)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=LOG_FORMAT,
            level=level.upper(),
            rotation="10 MB",
            retention="7 days",
            compression="zip",
            serialize=serialize,
            enqueue=True,
        )

    _configured = True


class InterceptHandler(logging.Handler):
    """Forward standard library records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Report the caller, not the logging module
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def intercept_standard_logging(names: tuple[str, ...] = INTERCEPTED_LOGGERS) -> None:
    """Route the named standard library loggers (SQLAlchemy's by default) to loguru.

    Other loggers, including the root logger, are left alone.
    """
    for name in names:
        std_logger = logging.getLogger(name)
        if not any(isinstance(handler, InterceptHandler) for handler in std_logger.handlers):
            std_logger.addHandler(InterceptHandler())
        std_logger.propagate = False


def reset_logging() -> None:
    """Forget the current configuration (useful for testing)."""
    global _configured
    _configured = False


__all__ = ["logger", "configure_logging", "intercept_standard_logging", "reset_logging"]
