"""Policy backed by an explicit name -> label mapping."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from .base import Categorizer, ProgressCallback, commit
from ..models import Categorization, NamedItem


class StaticCategorizer(Categorizer):
    """Looks each item up in a fixed mapping, falling back to ``default`` when set."""

    name = "static"

    def __init__(self, mapping: Mapping[str, str], *, default: Optional[str] = None) -> None:
        self.mapping = dict(mapping)
        self.default = default

    async def categorize(
        self,
        items: Sequence[NamedItem],
        *,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Categorization:
        assignments = {}
        for item in items:
            label = self.mapping.get(item.name, self.default)
            if label is None:
                continue
            assignments[item.name] = label
            if on_progress is not None:
                on_progress(item.name, label)
        return commit(items, assignments)


__all__ = ["StaticCategorizer"]
