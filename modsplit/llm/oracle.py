"""Classification oracle backed by a chat-completion model."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from ..categorizers.oracle import Oracle
from ..errors import SplitError
from ..logging import get_logger
from ..models import NamedItem
from ..prompting.builder import PromptBuilder, PromptMessage
from .runner import LLMRunner

_LOGGER = get_logger("llm.oracle")
_LABEL_LIST = TypeAdapter(List[str])


class LabelAssignment(BaseModel):
    """One line of the model's JSON Lines answer."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str
    label: str


def parse_assignment(line: str) -> Optional[LabelAssignment]:
    """Parse a JSON Lines record, skipping prose, code fences and malformed rows."""
    text = line.strip().rstrip(",")
    if not text.startswith("{"):
        return None
    try:
        return LabelAssignment.model_validate_json(text)
    except ValidationError:
        _LOGGER.warning("Skipping malformed oracle line: %s", text)
        return None


def parse_labels(response: str) -> List[str]:
    """Extract the JSON array of labels from a discovery answer."""
    start = response.find("[")
    end = response.rfind("]")
    if start == -1 or end < start:
        raise SplitError(f"Label discovery returned no JSON array: {response.strip()[:200]}")
    try:
        labels = _LABEL_LIST.validate_json(response[start : end + 1])
    except ValidationError as exc:
        raise SplitError(f"Label discovery returned an invalid label list: {exc}") from exc
    return [label.strip() for label in labels if label.strip()]


class LLMOracle(Oracle):
    """Asks the model for labels and streams its JSON Lines answer back as pairs."""

    def __init__(self, runner: LLMRunner, prompt_builder: PromptBuilder | None = None) -> None:
        self.runner = runner
        self.prompt_builder = prompt_builder or PromptBuilder()

    async def classify(
        self,
        items: Sequence[NamedItem],
        labels: Optional[Sequence[str]] = None,
    ) -> AsyncIterator[Tuple[str, str]]:
        system, prompt = _unpack(self.prompt_builder.classify(items, labels))
        async for line in self._stream_lines(prompt, system):
            assignment = parse_assignment(line)
            if assignment is not None:
                yield assignment.name, assignment.label

    async def discover_labels(self, items: Sequence[NamedItem]) -> List[str]:
        system, prompt = _unpack(self.prompt_builder.discover(items))
        response = await asyncio.to_thread(self.runner.run, prompt, system=system)
        return parse_labels(response)

    async def _stream_lines(self, prompt: str, system: Optional[str]) -> AsyncIterator[str]:
        chunks = self.runner.stream(prompt, system=system)
        buffer = ""
        try:
            while True:
                chunk = await asyncio.to_thread(next, chunks, None)
                if chunk is None:
                    break
                buffer += chunk
                while "\n" in buffer:
                    line, buffer = buffer.split("\n", 1)
                    yield line
        finally:
            close = getattr(chunks, "close", None)
            if close is not None:
                close()
        if buffer:
            yield buffer


def _unpack(messages: Sequence[PromptMessage]) -> Tuple[Optional[str], str]:
    system = next((message.content for message in messages if message.role == "system"), None)
    prompt = "\n\n".join(message.content for message in messages if message.role == "user")
    return system, prompt


__all__ = ["LLMOracle", "LabelAssignment", "parse_assignment", "parse_labels"]
