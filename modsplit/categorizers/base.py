"""Base classes for categorizer policies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from ..errors import CategorizationIncompletenessError
from ..models import Categorization, NamedItem

ProgressCallback = Callable[[str, str], None]


class Categorizer(ABC):
    """Contract for policies that assign every named item to a category label."""

    name = "base"

    @abstractmethod
    async def categorize(
        self,
        items: Sequence[NamedItem],
        *,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Categorization:
        """Return a total name -> label assignment for ``items``."""


def commit(
    items: Sequence[NamedItem],
    assignments: Mapping[str, str],
    order: Optional[Sequence[str]] = None,
) -> Categorization:
    """Freeze an assignment, failing when any item was left without a label.

    Labels are ordered by ``order`` when given, otherwise by the first item
    (in source order) that carries each label.
    """
    missing = [item.name for item in items if item.name not in assignments]
    if missing:
        raise CategorizationIncompletenessError(missing)

    committed: Dict[str, str] = {item.name: assignments[item.name] for item in items}
    used = set(committed.values())
    labels: List[str] = []
    for label in list(order or []) + [committed[item.name] for item in items]:
        if label in used and label not in labels:
            labels.append(label)
    return Categorization(assignments=committed, labels=labels)


__all__ = ["Categorizer", "ProgressCallback", "commit"]
