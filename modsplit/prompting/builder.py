"""Builds categorization prompts for the LLM oracle."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from ..models import NamedItem
from .constants import (
    CLASSIFY_TEMPLATE,
    DISCOVER_TEMPLATE,
    MAX_DISCOVERED_LABELS,
    MIN_DISCOVERED_LABELS,
    SYSTEM_PROMPT,
)


@dataclass(frozen=True)
class PromptMessage:
    """Represents a single chat message for LLM prompting."""

    role: str
    content: str


class PromptBuilder:
    """Renders classification and label-discovery prompts from templates."""

    SYSTEM_PROMPT = SYSTEM_PROMPT

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir
        self._env = self._create_env(templates_dir)

    def classify(
        self, items: Sequence[NamedItem], labels: Optional[Sequence[str]] = None
    ) -> List[PromptMessage]:
        template = self._env.get_template(CLASSIFY_TEMPLATE)
        prompt = template.render(items=list(items), labels=list(labels or []))
        return self._messages(prompt)

    def discover(self, items: Sequence[NamedItem]) -> List[PromptMessage]:
        template = self._env.get_template(DISCOVER_TEMPLATE)
        prompt = template.render(
            items=list(items),
            min_labels=MIN_DISCOVERED_LABELS,
            max_labels=MAX_DISCOVERED_LABELS,
        )
        return self._messages(prompt)

    def _messages(self, prompt: str) -> List[PromptMessage]:
        return [
            PromptMessage(role="system", content=self.SYSTEM_PROMPT),
            PromptMessage(role="user", content=prompt.strip()),
        ]

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories: List[str] = []
        if templates_dir:
            directories.append(str(templates_dir))
        default_dir = str(Path(__file__).with_name("templates"))
        if default_dir not in directories:
            directories.append(default_dir)
        loader = FileSystemLoader(directories)
        return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


__all__ = ["PromptBuilder", "PromptMessage"]
