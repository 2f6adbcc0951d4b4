"""Tree-sitter powered parser for JavaScript and TypeScript modules."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from .base import SourceParser
from ..errors import SourceParseError
from ..logging import get_logger
from ..models import SourceModule, Statement

_EXTENSION_LANGUAGES = {
    "js": "javascript",
    "mjs": "javascript",
    "cjs": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "mts": "typescript",
    "cts": "typescript",
    "tsx": "tsx",
}

_COMMENT_TYPES = frozenset({"comment", "html_comment", "hash_bang_line"})
_HASHBANG_TYPE = "hash_bang_line"

_FUNCTION_TYPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
        "method_definition",
    }
)

DEFAULT_SIGNATURE_CHARS = 240


def language_for_extension(ext: str) -> str:
    """Map a file extension such as ``ts`` or ``test.ts`` to a grammar name."""
    suffix = ext.rsplit(".", 1)[-1].lower()
    try:
        return _EXTENSION_LANGUAGES[suffix]
    except KeyError:
        supported = ", ".join(sorted(_EXTENSION_LANGUAGES))
        raise ValueError(f"Unsupported extension '.{suffix}' (expected one of: {supported})") from None


def _load_language(language_key: str) -> Language:
    if language_key == "javascript":
        return Language(tree_sitter_javascript.language())
    if language_key == "typescript":
        return Language(tree_sitter_typescript.language_typescript())
    if language_key == "tsx":
        return Language(tree_sitter_typescript.language_tsx())
    raise ValueError(f"Unknown grammar '{language_key}'")


class TreeSitterParser(SourceParser):
    """Parses a module into top-level statements that keep their exact source text."""

    _languages: Dict[str, Language] = {}

    def __init__(
        self,
        language: str = "typescript",
        *,
        signature_chars: int = DEFAULT_SIGNATURE_CHARS,
    ) -> None:
        self.language = language
        self.signature_chars = signature_chars
        self.logger = get_logger("parsing")
        self._parser: Optional[Parser] = None

    @classmethod
    def for_extension(cls, ext: str, **kwargs) -> "TreeSitterParser":  # type: ignore[no-untyped-def]
        return cls(language_for_extension(ext), **kwargs)

    def parse(self, text: str) -> SourceModule:
        source = text.encode("utf-8")
        tree = self._get_parser().parse(source)
        root = tree.root_node
        if root.has_error:
            error_node = self._first_error(root)
            line = error_node.start_point[0] + 1 if error_node is not None else None
            where = f" near line {line}" if line is not None else ""
            raise SourceParseError(f"Syntax error in {self.language} source{where}", line=line)

        hashbang = next(
            (self.node_text(child, source).rstrip() for child in root.children if child.type == _HASHBANG_TYPE),
            None,
        )
        spans = self._statement_spans(root)
        statements = tuple(
            Statement(
                index=index,
                node_type=node.type,
                text=source[start:end].decode("utf-8"),
                line=node.start_point[0] + 1,
                node=node,
            )
            for index, (node, start, end) in enumerate(spans)
        )
        self.logger.debug("Parsed %d top-level statements", len(statements))
        return SourceModule(
            source=source, language=self.language, statements=statements, hashbang=hashbang
        )

    def compact_text(self, node: Node, source: bytes) -> str:
        if node.type in _COMMENT_TYPES:
            return ""
        if node.child_count == 0:
            return self.node_text(node, source)
        return "".join(self.compact_text(child, source) for child in node.children)

    def signature_of(self, node: Node, source: bytes) -> str:
        cuts: List[Tuple[int, int, str]] = []
        self._collect_bodies(node, cuts)
        pieces: List[str] = []
        cursor = node.start_byte
        for start, end, placeholder in cuts:
            pieces.append(source[cursor:start].decode("utf-8", errors="ignore"))
            pieces.append(placeholder)
            cursor = end
        pieces.append(source[cursor : node.end_byte].decode("utf-8", errors="ignore"))
        signature = " ".join("".join(pieces).split())
        if len(signature) > self.signature_chars:
            signature = signature[: self.signature_chars - 3].rstrip() + "..."
        return signature

    @staticmethod
    def node_text(node: Node, source: bytes) -> str:
        return source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    def _get_parser(self) -> Parser:
        if self._parser is not None:
            return self._parser
        language = self._languages.get(self.language)
        if language is None:
            language = _load_language(self.language)
            self._languages[self.language] = language
        parser = Parser()
        parser.language = language
        self._parser = parser
        return parser

    def _statement_spans(self, root: Node) -> List[Tuple[Node, int, int]]:
        """Pair each statement with a byte span that includes its comments.

        Comments before a statement lead it; a comment starting on the row a
        statement ends on trails it. Comments after the last statement are
        appended to it. A hashbang line belongs to no statement.
        """
        spans: List[List] = []
        end_rows: List[int] = []
        pending_start: Optional[int] = None
        pending_end: Optional[int] = None
        for child in root.named_children:
            if child.type == _HASHBANG_TYPE:
                continue
            if child.type in _COMMENT_TYPES:
                if pending_start is None and spans and child.start_point[0] == end_rows[-1]:
                    spans[-1][2] = child.end_byte
                    end_rows[-1] = child.end_point[0]
                    continue
                if pending_start is None:
                    pending_start = child.start_byte
                pending_end = child.end_byte
                continue
            start = pending_start if pending_start is not None else child.start_byte
            spans.append([child, start, child.end_byte])
            end_rows.append(child.end_point[0])
            pending_start = pending_end = None

        if pending_end is not None:
            if spans:
                spans[-1][2] = pending_end
            else:
                self.logger.debug("Module contains only comments; nothing to split")
        return [(node, start, end) for node, start, end in spans]

    def _collect_bodies(self, node: Node, cuts: List[Tuple[int, int, str]]) -> None:
        if node.type in _FUNCTION_TYPES:
            body = node.child_by_field_name("body")
            if body is not None:
                placeholder = "{ ... }" if body.type == "statement_block" else "..."
                cuts.append((body.start_byte, body.end_byte, placeholder))
                return
        for child in node.children:
            self._collect_bodies(child, cuts)

    @classmethod
    def _first_error(cls, node: Node) -> Optional[Node]:
        if node.type == "ERROR" or node.is_missing:
            return node
        for child in node.children:
            if child.has_error or child.is_missing:
                found = cls._first_error(child)
                if found is not None:
                    return found
        return None


__all__ = ["DEFAULT_SIGNATURE_CHARS", "TreeSitterParser", "language_for_extension"]
