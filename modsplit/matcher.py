"""Recognise in-source test blocks and link them to the items they exercise.

The recognised idiom is the Vitest in-source test layout::

    if (import.meta.vitest) {
      const { describe, test } = import.meta.vitest
      describe("add", () => { ... })
    }

A block is linked to an item only when exactly one top-level registration
call with a string literal name is found; anything less certain is rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .errors import UnsupportedStatementError
from .logging import get_logger
from .models import NamedItem, Statement, StatementFailure, TestBlock
from .parsing.base import SourceParser

_COMMENT_TYPES = frozenset({"comment", "html_comment"})
_VARIABLE_TYPES = frozenset({"lexical_declaration", "variable_declaration"})
_OCTAL_DIGITS = frozenset("01234567")
_LINE_TERMINATORS = frozenset({"\r", "\n", "\u2028", "\u2029"})
_SINGLE_CHAR_ESCAPES = {"b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t", "v": "\v"}


@dataclass(frozen=True)
class TestHooks:
    """Sentinel expression and registration function names of the test idiom."""

    __test__ = False  # not a pytest class

    sentinel: str = "import.meta.vitest"
    group_hook: str = "describe"
    case_hook: str = "test"

    @property
    def compact_sentinel(self) -> str:
        return "".join(self.sentinel.split())


@dataclass
class MatchResult:
    """Blocks keyed by the item name they test, plus rejected candidates."""

    blocks: Dict[str, TestBlock] = field(default_factory=dict)
    superseded: List[TestBlock] = field(default_factory=list)
    rejected: List[StatementFailure] = field(default_factory=list)


class TestMatcher:
    """Matches conditional blocks against the configured test idiom."""

    __test__ = False  # not a pytest class

    def __init__(self, parser: SourceParser, hooks: TestHooks | None = None) -> None:
        self._parser = parser
        self.hooks = hooks or TestHooks()
        self.logger = get_logger("matcher")

    def match(self, candidates: Iterable[Statement], source: bytes) -> MatchResult:
        result = MatchResult()
        for statement in candidates:
            name = self.tested_name(statement.node, source)
            if name is None:
                error = UnsupportedStatementError(
                    f"Unsupported statement type '{statement.node_type}'"
                    " (not a recognised in-source test block)"
                )
                result.rejected.append(StatementFailure(statement, error))
                continue
            previous = result.blocks.get(name)
            if previous is not None:
                self.logger.debug(
                    "Test block on line %d replaces the one on line %d for '%s'",
                    statement.line,
                    previous.statement.line,
                    name,
                )
                result.superseded.append(previous)
            result.blocks[name] = TestBlock(statement=statement, name=name)
        return result

    def tested_name(self, node: Any, source: bytes) -> Optional[str]:
        """Return the item name tested by ``node``, or ``None`` when it is not a test block."""
        sentinel = self.hooks.compact_sentinel
        if node.type != "if_statement":
            return None
        condition = _unwrap_parentheses(node.child_by_field_name("condition"))
        if condition is None or self._parser.compact_text(condition, source) != sentinel:
            return None

        body = node.child_by_field_name("consequence")
        if body is None or body.type != "statement_block":
            return None
        statements = [child for child in body.named_children if child.type not in _COMMENT_TYPES]
        if not statements or statements[0].type not in _VARIABLE_TYPES:
            return None
        declarator = next(
            (child for child in statements[0].named_children if child.type == "variable_declarator"),
            None,
        )
        if declarator is None:
            return None
        pattern = declarator.child_by_field_name("name")
        initializer = declarator.child_by_field_name("value")
        if initializer is None or self._parser.compact_text(initializer, source) != sentinel:
            return None
        if pattern is None or pattern.type != "object_pattern":
            return None

        hooks = set(self._destructured_names(pattern, source))
        if self.hooks.group_hook in hooks:
            target = self.hooks.group_hook
        elif self.hooks.case_hook in hooks:
            target = self.hooks.case_hook
        else:
            return None

        names = [
            name
            for name in (self._registered_name(stmt, target, source) for stmt in statements)
            if name is not None
        ]
        if len(names) != 1:
            self.logger.debug(
                "Line %d: expected one '%s' call, found %d",
                node.start_point[0] + 1,
                target,
                len(names),
            )
            return None
        return names[0]

    def _destructured_names(self, pattern: Any, source: bytes) -> List[str]:
        names: List[str] = []
        for prop in pattern.named_children:
            if prop.type == "shorthand_property_identifier_pattern":
                names.append(self._parser.compact_text(prop, source))
            elif prop.type == "pair_pattern":
                key = prop.child_by_field_name("key")
                if key is not None:
                    names.append(_strip_quotes(self._parser.compact_text(key, source)))
            elif prop.type == "object_assignment_pattern":
                left = prop.child_by_field_name("left")
                if left is not None:
                    names.append(self._parser.compact_text(left, source))
        return names

    def _registered_name(self, statement: Any, target: str, source: bytes) -> Optional[str]:
        if statement.type != "expression_statement":
            return None
        call = next((child for child in statement.named_children if child.type not in _COMMENT_TYPES), None)
        if call is None or call.type != "call_expression":
            return None
        function = call.child_by_field_name("function")
        if function is None or function.type != "identifier":
            return None
        if self._parser.compact_text(function, source) != target:
            return None
        arguments = call.child_by_field_name("arguments")
        if arguments is None or arguments.type != "arguments":
            return None
        first = next((arg for arg in arguments.named_children if arg.type not in _COMMENT_TYPES), None)
        if first is None or first.type != "string":
            return None
        return _string_value(first, source)


def link_tests(items: Sequence[NamedItem], match: MatchResult) -> tuple[Dict[str, TestBlock], List[StatementFailure]]:
    """Attach matched blocks to items; report orphan and superseded blocks as failures."""
    names = {item.name for item in items}
    links: Dict[str, TestBlock] = {}
    failures: List[StatementFailure] = list(match.rejected)
    for block in match.superseded:
        error = UnsupportedStatementError(
            f"In-source test block for '{block.name}' is superseded by a later block"
        )
        failures.append(StatementFailure(block.statement, error))
    for name, block in match.blocks.items():
        if name in names:
            links[name] = block
        else:
            error = UnsupportedStatementError(
                f"In-source test block names '{name}', which is not a top-level declaration"
            )
            failures.append(StatementFailure(block.statement, error))
    failures.sort(key=lambda failure: failure.statement.index)
    return links, failures


def _unwrap_parentheses(node: Any) -> Any:
    while node is not None and node.type == "parenthesized_expression":
        node = next((child for child in node.named_children if child.type not in _COMMENT_TYPES), None)
    return node


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    return value


def _string_value(node: Any, source: bytes) -> str:
    parts: List[str] = []
    for child in node.named_children:
        raw = source[child.start_byte : child.end_byte].decode("utf-8")
        if child.type == "escape_sequence":
            parts.append(_unescape(raw))
        else:
            parts.append(raw)
    # \uXXXX escapes may spell a surrogate pair
    return "".join(parts).encode("utf-16", "surrogatepass").decode("utf-16", "surrogatepass")


def _unescape(sequence: str) -> str:
    """Decode one JavaScript string escape sequence, backslash included."""
    body = sequence[1:]
    if not body:
        return ""
    head = body[0]
    if head in _LINE_TERMINATORS:
        return ""
    if head == "x":
        return chr(int(body[1:3], 16))
    if head == "u":
        digits = body[2:-1] if body.startswith("u{") else body[1:5]
        return chr(int(digits, 16))
    if head in _OCTAL_DIGITS:
        return chr(int(body, 8))
    return _SINGLE_CHAR_ESCAPES.get(head, head)


__all__ = ["MatchResult", "TestHooks", "TestMatcher", "link_tests"]
