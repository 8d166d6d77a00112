"""Logging setup shared by the HTTP service and the import CLI."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "ecospray"

CLI_FORMAT = "[ecospray] %(levelname)s %(message)s"
SERVICE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Client libraries that log every request at INFO/DEBUG.
CHATTY_LOGGERS: tuple[str, ...] = ("urllib3", "google.auth", "google.auth.transport")


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``ecospray.<name>``, e.g. ``get_logger("crawler")``."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME)


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    service: bool = False,
) -> logging.Logger:
    """Install ecospray's handlers; calling it again replaces them.

    ``service`` switches to timestamped lines with logger names, which is what
    ends up next to the uvicorn access log.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(SERVICE_FORMAT if service else CLI_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(level)
        sink.setFormatter(logging.Formatter(SERVICE_FORMAT))
        logger.addHandler(sink)

    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)

    return logger


__all__ = ["configure_logging", "get_logger"]
