"""Placeholder policy that assigns labels at random."""

from __future__ import annotations

import random
from typing import Optional, Sequence

from .base import Categorizer, ProgressCallback, commit
from ..models import Categorization, NamedItem

DEFAULT_LABELS: tuple[str, ...] = ("utils", "services", "controllers")


class RandomCategorizer(Categorizer):
    """Picks a uniformly random label per item; only useful for trying the pipeline out."""

    name = "random"

    def __init__(
        self,
        labels: Sequence[str] = DEFAULT_LABELS,
        *,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not labels:
            raise ValueError("RandomCategorizer needs at least one label")
        self.labels = tuple(labels)
        self._rng = rng or random.Random(seed)

    async def categorize(
        self,
        items: Sequence[NamedItem],
        *,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Categorization:
        assignments = {}
        for item in items:
            label = self._rng.choice(self.labels)
            assignments[item.name] = label
            if on_progress is not None:
                on_progress(item.name, label)
        return commit(items, assignments)


__all__ = ["DEFAULT_LABELS", "RandomCategorizer"]
