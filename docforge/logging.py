"""Logging setup shared by the docforge CLI, service and pipeline components."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "docforge"
_CONSOLE_FORMAT = "[docforge] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(component)s: %(message)s"


class _ComponentFilter(logging.Filter):
    """Expose the pipeline component (``generator``, ``gate``...) as ``%(component)s``."""

    def filter(self, record: logging.LogRecord) -> bool:
        prefix = f"{_LOGGER_NAME}."
        name = record.name
        record.component = name[len(prefix):] if name.startswith(prefix) else name
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a component logger under the docforge hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send docforge records to stderr and, when ``log_file`` is set, append them there too.

    Calling it again replaces the handlers installed by the previous call.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_handler(logging.StreamHandler(), level, _CONSOLE_FORMAT))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.addFilter(_ComponentFilter())
        logger.addHandler(_handler(file_handler, level, _FILE_FORMAT))

    return logger


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


__all__ = ["configure_logging", "get_logger"]
