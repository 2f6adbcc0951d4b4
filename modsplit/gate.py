"""Abort a run before any write when some statements cannot be placed."""

from __future__ import annotations

from typing import Iterable

from .errors import UnsplittableModuleError
from .logging import get_logger
from .models import StatementFailure

_LOGGER = get_logger("gate")


def enforce(failures: Iterable[StatementFailure]) -> None:
    """Raise one aggregate error carrying every failure, ordered by position."""
    collected = sorted(failures, key=lambda failure: failure.statement.index)
    if not collected:
        return
    _LOGGER.debug("Blocking run: %d unsupported statements", len(collected))
    raise UnsplittableModuleError(collected)


__all__ = ["enforce"]
