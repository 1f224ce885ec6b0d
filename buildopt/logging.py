"""Logging utilities for buildopt commands.

Records may carry the entry point or file they concern (see
:func:`entry_logger`); handlers render it as a ``[vs/workbench/main]`` prefix
so interleaved output from parallel builds stays attributable.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "buildopt"
_CONSOLE_FORMAT = "[buildopt] %(levelname)s %(entry_prefix)s%(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(entry_prefix)s%(message)s"


class EntryContextFilter(logging.Filter):
    """Derive ``entry_prefix`` from the optional ``entry`` record attribute."""

    def filter(self, record: logging.LogRecord) -> bool:
        entry = getattr(record, "entry", None)
        record.entry_prefix = f"[{entry}] " if entry else ""
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the buildopt hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def entry_logger(logger: logging.Logger, entry: str) -> logging.LoggerAdapter:
    """Wrap ``logger`` so every record names the entry point it belongs to."""
    return logging.LoggerAdapter(logger, {"entry": entry})


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach a console handler, plus a file handler when ``log_file`` is set."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Repeated calls replace handlers instead of stacking them.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: list[tuple[logging.Handler, str]] = [(logging.StreamHandler(), _CONSOLE_FORMAT)]
    if log_file is not None:
        handlers.append((logging.FileHandler(log_file, encoding="utf-8"), _FILE_FORMAT))
    for handler, fmt in handlers:
        handler.setLevel(level)
        handler.addFilter(EntryContextFilter())
        handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(handler)

    return logger


__all__ = ["EntryContextFilter", "configure_logging", "entry_logger", "get_logger"]
