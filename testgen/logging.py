"""Logging setup shared by the CLI, the service and the pipeline."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "testgen"

CONSOLE_FORMAT = "[testgen] %(levelname)s %(message)s"
VERBOSE_CONSOLE_FORMAT = "[testgen] %(levelname)s %(name)s: %(message)s"
# Analysis runs on worker threads, so file records carry the thread and source location.
FILE_FORMAT = (
    "%(asctime)s %(levelname)s [%(threadName)s] %(name)s (%(module)s:%(lineno)d): %(message)s"
)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under ``testgen``, e.g. ``get_logger("writer")``."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach a console handler and, when ``log_file`` is given, a file handler.

    Verbose mode lowers the level to DEBUG and prefixes console lines with the
    emitting component (``testgen.orchestrator``, ``testgen.writer``, ...).
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Repeated CLI invocations in one process must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(
        logging.Formatter(VERBOSE_CONSOLE_FORMAT if verbose else CONSOLE_FORMAT)
    )
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
