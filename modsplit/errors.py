"""Error taxonomy for module splitting runs."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from .models import StatementFailure


class SplitError(RuntimeError):
    """Base class for failures that abort a splitting run."""


class SourceParseError(SplitError):
    """Raised when the parser reports syntax errors in the input."""

    def __init__(self, message: str, *, line: int | None = None) -> None:
        super().__init__(message)
        self.line = line


class NameExtractionError(SplitError):
    """Raised when a declaration shape has no derivable name."""


class DuplicateNameError(NameExtractionError):
    """Raised when two declarations derive the same name."""

    def __init__(self, name: str, first_line: int) -> None:
        super().__init__(f"Duplicate declaration of '{name}' (first declared on line {first_line})")
        self.name = name
        self.first_line = first_line


class UnsupportedStatementError(SplitError):
    """Raised for statements that are not imports, named items or linked test blocks."""


class UnsplittableModuleError(SplitError):
    """Aggregate of every statement that blocks the split."""

    def __init__(self, failures: Sequence[StatementFailure]) -> None:
        self.failures: List[StatementFailure] = list(failures)
        super().__init__(self._format(self.failures))

    @staticmethod
    def _format(failures: Iterable[StatementFailure]) -> str:
        lines = ["Unsupported statements in source file:"]
        for failure in failures:
            lines.append(f"- {failure.describe()}")
            lines.append(failure.statement.text)
        return "\n".join(lines)


class CategorizationIncompletenessError(SplitError):
    """Raised when one or more item names never received a label."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__("No category returned for: " + ", ".join(self.missing))


class OracleContractViolationError(SplitError):
    """Raised when an oracle returns a label outside the supplied label set."""

    def __init__(self, name: str, label: str, allowed: Sequence[str]) -> None:
        self.name = name
        self.label = label
        self.allowed = list(allowed)
        super().__init__(
            f"Label '{label}' for '{name}' is not one of: {', '.join(self.allowed)}"
        )


class InvalidCategoryError(SplitError):
    """Raised when a category label cannot be turned into a unique file name."""


__all__ = [
    "CategorizationIncompletenessError",
    "DuplicateNameError",
    "InvalidCategoryError",
    "NameExtractionError",
    "OracleContractViolationError",
    "SourceParseError",
    "SplitError",
    "UnsplittableModuleError",
    "UnsupportedStatementError",
]
