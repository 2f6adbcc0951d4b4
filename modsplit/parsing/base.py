"""Base classes for source parser backends."""

from abc import ABC, abstractmethod
from typing import Any

from ..models import SourceModule


class SourceParser(ABC):
    """Contract for parsers that split a module into top-level statements."""

    @abstractmethod
    def parse(self, text: str) -> SourceModule:
        """Return the ordered top-level statements of ``text``."""

    @abstractmethod
    def compact_text(self, node: Any, source: bytes) -> str:
        """Return the node's tokens with whitespace and comments removed."""

    @abstractmethod
    def signature_of(self, node: Any, source: bytes) -> str:
        """Return the node's declaration text with implementation bodies erased."""
