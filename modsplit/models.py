"""Core data models shared across modsplit components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class StatementKind(Enum):
    """Closed set of top-level statement kinds recognised by the classifier."""

    IMPORT = "import"
    NAMED_ITEM = "named_item"
    CONDITIONAL_BLOCK = "conditional_block"
    OTHER = "other"


@dataclass(eq=False)
class Statement:
    """One top-level statement, keyed by its position in the module.

    ``text`` is the exact source slice, including attached comments, so that
    unmodified statements round-trip byte for byte. Equality is identity: two
    statements with identical text are still distinct entries.
    """

    index: int
    node_type: str
    text: str
    line: int
    node: Any = field(repr=False)


@dataclass(frozen=True)
class SourceModule:
    """Ordered top-level statements parsed from one source text.

    A leading ``#!`` line is kept apart in ``hashbang`` since it must stay the
    first line of any file it appears in.
    """

    source: bytes
    language: str
    statements: Tuple[Statement, ...]
    hashbang: Optional[str] = None

    def __len__(self) -> int:
        return len(self.statements)


@dataclass(eq=False)
class NamedItem:
    """A declaration with an extractable identifier."""

    statement: Statement
    name: str
    signature: Optional[str] = None

    @property
    def text(self) -> str:
        return self.statement.text


@dataclass(eq=False)
class TestBlock:
    """A recognised in-source test block and the single item name it tests."""

    __test__ = False  # not a pytest class

    statement: Statement
    name: str

    @property
    def text(self) -> str:
        return self.statement.text


@dataclass
class StatementFailure:
    """A statement that cannot be placed into any output file."""

    statement: Statement
    error: Exception

    def describe(self) -> str:
        return f"line {self.statement.line}: {self.error}"


@dataclass
class Categorization:
    """Committed outcome of one categorizer call."""

    assignments: Dict[str, str]
    labels: List[str]

    def label_for(self, name: str) -> str:
        return self.assignments[name]


@dataclass
class Category:
    """A label and the items assigned to it, in first-discovery order."""

    label: str
    items: List[NamedItem] = field(default_factory=list)


@dataclass(frozen=True)
class OutputFile:
    """A generated file: relative path plus the statement texts to concatenate."""

    path: str
    header: Tuple[str, ...]
    blocks: Tuple[str, ...]

    def render(self) -> str:
        parts: List[str] = []
        if self.header:
            parts.append("\n".join(self.header))
        if self.blocks:
            parts.append("\n\n".join(self.blocks))
        if not parts:
            return ""
        return "\n\n".join(parts) + "\n"


__all__ = [
    "Categorization",
    "Category",
    "NamedItem",
    "OutputFile",
    "SourceModule",
    "Statement",
    "StatementFailure",
    "StatementKind",
    "TestBlock",
]
