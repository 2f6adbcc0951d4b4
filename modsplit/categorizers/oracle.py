"""Policies that delegate labelling to an external classification oracle."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator, Dict, List, Optional, Sequence, Tuple

from .base import Categorizer, ProgressCallback, commit
from ..errors import OracleContractViolationError, SplitError
from ..logging import get_logger
from ..models import Categorization, NamedItem


class Oracle(ABC):
    """Contract for classification backends consulted by the oracle policies."""

    @abstractmethod
    def classify(
        self,
        items: Sequence[NamedItem],
        labels: Optional[Sequence[str]] = None,
    ) -> AsyncIterator[Tuple[str, str]]:
        """Stream ``(name, label)`` pairs; restricted to ``labels`` when given."""

    @abstractmethod
    async def discover_labels(self, items: Sequence[NamedItem]) -> List[str]:
        """Propose a small label vocabulary for ``items``."""


class OpenVocabularyCategorizer(Categorizer):
    """Lets the oracle invent labels; the first label returned per name wins."""

    name = "open"

    def __init__(self, oracle: Oracle) -> None:
        self.oracle = oracle
        self.logger = get_logger("categorizers")

    async def categorize(
        self,
        items: Sequence[NamedItem],
        *,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Categorization:
        if not items:
            return commit(items, {})
        labels = await self._resolve_labels(items)
        assignments, order = await self._collect(items, labels, on_progress)
        categorization = commit(items, assignments, order)
        if len(items) > 1 and len(categorization.labels) == len(items):
            self.logger.warning(
                "Oracle gave every item its own category (%d labels for %d items)",
                len(categorization.labels),
                len(items),
            )
        return categorization

    async def _resolve_labels(self, items: Sequence[NamedItem]) -> Optional[List[str]]:
        return None

    async def _collect(
        self,
        items: Sequence[NamedItem],
        labels: Optional[Sequence[str]],
        on_progress: Optional[ProgressCallback],
    ) -> Tuple[Dict[str, str], List[str]]:
        requested = {item.name for item in items}
        assignments: Dict[str, str] = {}
        order: List[str] = []
        async for name, label in self.oracle.classify(items, labels):
            if on_progress is not None:
                on_progress(name, label)
            if labels is not None and label not in labels:
                raise OracleContractViolationError(name, label, labels)
            if name not in requested:
                self.logger.warning("Ignoring label for unknown item '%s'", name)
                continue
            if name in assignments:
                self.logger.debug(
                    "Ignoring repeated label '%s' for '%s' (kept '%s')", label, name, assignments[name]
                )
                continue
            assignments[name] = label
            if label not in order:
                order.append(label)
        return assignments, order


class ClosedVocabularyCategorizer(OpenVocabularyCategorizer):
    """Restricts the oracle to a fixed label set, discovering one first when none is given."""

    name = "closed"

    def __init__(self, oracle: Oracle, labels: Optional[Sequence[str]] = None) -> None:
        super().__init__(oracle)
        self.labels = _unique(labels or [])

    async def _resolve_labels(self, items: Sequence[NamedItem]) -> Optional[List[str]]:
        if self.labels:
            return list(self.labels)
        discovered = _unique(await self.oracle.discover_labels(items))
        if not discovered:
            raise SplitError("Label discovery returned no labels")
        self.logger.info("Discovered labels: %s", ", ".join(discovered))
        return discovered


def _unique(labels: Sequence[str]) -> List[str]:
    result: List[str] = []
    for label in labels:
        cleaned = label.strip()
        if cleaned and cleaned not in result:
            result.append(cleaned)
    return result


__all__ = ["ClosedVocabularyCategorizer", "OpenVocabularyCategorizer", "Oracle"]
