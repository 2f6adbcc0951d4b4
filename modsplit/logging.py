"""Logging set-up shared by the modsplit CLI and library callers."""

from __future__ import annotations

import logging
from pathlib import Path

_ROOT = "modsplit"
CONSOLE_FORMAT = "[modsplit] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``modsplit`` or one of its children, e.g. ``modsplit.matcher``."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def log_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """DEBUG shows per-statement decisions, WARNING hides per-item progress."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route modsplit records to stderr and, optionally, to ``log_file``.

    Calling it again replaces the handlers installed by the previous call.
    """
    level = log_level(verbose=verbose, quiet=quiet)
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [_formatted(logging.StreamHandler(), CONSOLE_FORMAT)]
    if log_file is not None:
        handlers.append(_formatted(logging.FileHandler(log_file, encoding="utf-8"), FILE_FORMAT))
    for handler in handlers:
        handler.setLevel(level)
        logger.addHandler(handler)
    return logger


def _formatted(handler: logging.Handler, fmt: str) -> logging.Handler:
    handler.setFormatter(logging.Formatter(fmt))
    return handler


__all__ = ["configure_logging", "get_logger", "log_level"]
