"""Loguru setup shared by the API, the CLI and the pipeline services."""

import sys
from pathlib import Path
from typing import Any, Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[job_id]}</magenta> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[job_id]} | {name}:{function}:{line} | {message}"

# Placeholder for records logged outside any composition request.
NO_JOB = "-"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    serialize: bool = False,
) -> None:
    """
    Configure the stderr sink and, optionally, a rotating file sink.

    Every record carries ``extra["job_id"]`` so lines from concurrent
    requests can be told apart; loggers from ``get_logger(..., job_id=...)``
    fill it in.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path to log file
        rotation: Log rotation size
        retention: Log retention period
        serialize: Write the file sink as JSON lines instead of text
    """
    logger.remove()
    logger.configure(extra={"job_id": NO_JOB})

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=log_level, colorize=True)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level=log_level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            serialize=serialize,
        )


def get_logger(name: str, **context: Any) -> Any:
    """
    Get a logger bound to a module name and request context.

    Args:
        name: Logger name (typically __name__)
        **context: Context fields such as job_id, mode or task

    Returns:
        Logger instance with bound context
    """
    return logger.bind(name=name, **context)


setup_logging()
