"""Shared constants for oracle prompting."""

from __future__ import annotations

CLASSIFY_TEMPLATE = "classify.j2"
DISCOVER_TEMPLATE = "discover.j2"

SYSTEM_PROMPT = (
    "You are a senior engineer splitting one large JavaScript/TypeScript module into "
    "cohesive files. Group declarations by responsibility and answer only in the "
    "requested machine-readable format."
)

MIN_DISCOVERED_LABELS = 2
MAX_DISCOVERED_LABELS = 8


__all__ = [
    "CLASSIFY_TEMPLATE",
    "DISCOVER_TEMPLATE",
    "MAX_DISCOVERED_LABELS",
    "MIN_DISCOVERED_LABELS",
    "SYSTEM_PROMPT",
]
