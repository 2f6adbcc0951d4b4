"""Partition a module's top-level statements into imports, items and test candidates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .errors import DuplicateNameError, NameExtractionError, UnsupportedStatementError
from .logging import get_logger
from .models import NamedItem, SourceModule, Statement, StatementFailure, StatementKind
from .parsing.base import SourceParser

_VARIABLE_TYPES = frozenset({"lexical_declaration", "variable_declaration"})
_FUNCTION_TYPES = frozenset({"function_declaration", "generator_function_declaration"})

_KIND_BY_NODE_TYPE: Dict[str, StatementKind] = {
    "import_statement": StatementKind.IMPORT,
    "lexical_declaration": StatementKind.NAMED_ITEM,
    "variable_declaration": StatementKind.NAMED_ITEM,
    "function_declaration": StatementKind.NAMED_ITEM,
    "generator_function_declaration": StatementKind.NAMED_ITEM,
    "export_statement": StatementKind.NAMED_ITEM,
    "if_statement": StatementKind.CONDITIONAL_BLOCK,
}

# Tokens that turn an export statement into something other than a named export:
# `export default ...`, `export * from ...`, `export = ...`, `export as namespace ...`.
_NON_NAMED_EXPORT_TOKENS = frozenset({"default", "*", "=", "namespace"})


@dataclass
class Classification:
    """Ordered outcome of classifying one module."""

    imports: List[Statement] = field(default_factory=list)
    items: List[NamedItem] = field(default_factory=list)
    candidates: List[Statement] = field(default_factory=list)
    failures: List[StatementFailure] = field(default_factory=list)


def statement_kind(statement: Statement) -> StatementKind:
    """Return the syntactic kind of a top-level statement."""
    kind = _KIND_BY_NODE_TYPE.get(statement.node_type, StatementKind.OTHER)
    if statement.node_type == "export_statement" and not _is_named_export(statement.node):
        return StatementKind.OTHER
    return kind


def _is_named_export(node: Any) -> bool:
    return not any(
        not child.is_named and child.type in _NON_NAMED_EXPORT_TOKENS for child in node.children
    )


class StatementClassifier:
    """Sorts statements into the buckets the splitter knows how to place."""

    def __init__(self, parser: SourceParser) -> None:
        self._parser = parser
        self.logger = get_logger("classifier")

    def classify(self, module: SourceModule) -> Classification:
        result = Classification()
        seen: Dict[str, NamedItem] = {}
        for statement in module.statements:
            kind = statement_kind(statement)
            if kind is StatementKind.IMPORT:
                result.imports.append(statement)
            elif kind is StatementKind.NAMED_ITEM:
                try:
                    item = self._named_item(statement, module.source)
                    if item.name in seen:
                        raise DuplicateNameError(item.name, seen[item.name].statement.line)
                except NameExtractionError as exc:
                    self.logger.debug("Line %d: %s", statement.line, exc)
                    result.failures.append(StatementFailure(statement, exc))
                    continue
                seen[item.name] = item
                result.items.append(item)
            elif kind is StatementKind.CONDITIONAL_BLOCK:
                result.candidates.append(statement)
            else:
                error = UnsupportedStatementError(f"Unsupported statement type '{statement.node_type}'")
                result.failures.append(StatementFailure(statement, error))
        self.logger.debug(
            "Classified %d imports, %d items, %d test candidates, %d failures",
            len(result.imports),
            len(result.items),
            len(result.candidates),
            len(result.failures),
        )
        return result

    def _named_item(self, statement: Statement, source: bytes) -> NamedItem:
        name = self.name_of(statement.node, source)
        signature = self._parser.signature_of(statement.node, source)
        return NamedItem(statement=statement, name=name, signature=signature)

    def name_of(self, node: Any, source: bytes) -> str:
        """Derive the declared name of a variable, function or named export."""
        if node.type in _VARIABLE_TYPES:
            declarator = next(
                (child for child in node.named_children if child.type == "variable_declarator"),
                None,
            )
            binding = declarator.child_by_field_name("name") if declarator is not None else None
            if binding is None or binding.type != "identifier":
                raise NameExtractionError("Unsupported variable declaration")
            return self._parser.compact_text(binding, source)
        if node.type in _FUNCTION_TYPES:
            name_node = node.child_by_field_name("name")
            if name_node is None:
                raise NameExtractionError("Anonymous function declaration")
            return self._parser.compact_text(name_node, source)
        if node.type == "export_statement":
            declaration = node.child_by_field_name("declaration")
            if declaration is None:
                raise NameExtractionError("Unsupported export named declaration without declaration")
            return self.name_of(declaration, source)
        raise NameExtractionError(f"Unsupported item type for naming: {node.type}")


__all__ = ["Classification", "StatementClassifier", "statement_kind"]
