"""Sample modules and helpers for building source files in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path

from modsplit.models import NamedItem, Statement

IMPORT = 'import { sum } from "./math.ts";'

ADD = textwrap.dedent(
    """\
    function add(a: number, b: number): number {
      return a + b;
    }"""
)

ADD_TEST = textwrap.dedent(
    """\
    if (import.meta.vitest) {
      const { test, expect } = import.meta.vitest;
      test("add", () => {
        expect(add(1, 2)).toBe(3);
      });
    }"""
)

SUB = textwrap.dedent(
    """\
    export function sub(a: number, b: number): number {
      return a - b;
    }"""
)

CALCULATOR = "\n\n".join([IMPORT, ADD, ADD_TEST, SUB]) + "\n"


def dedent(source: str) -> str:
    """Normalise an indented triple-quoted module body."""
    return textwrap.dedent(source).lstrip("\n")


def make_item(name: str, index: int = 0, signature: str | None = None) -> NamedItem:
    """Build a named item that is not backed by a parse tree."""
    statement = Statement(
        index=index,
        node_type="function_declaration",
        text=f"function {name}() {{}}",
        line=index + 1,
        node=None,
    )
    return NamedItem(statement=statement, name=name, signature=signature)


class SourceBuilder:
    """Utility for writing module files into a throwaway directory."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "src"
        self.root.mkdir()

    def write(self, name: str, content: str) -> Path:
        """Write ``content`` to ``name`` and return its path."""
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path


__all__ = ["ADD", "ADD_TEST", "CALCULATOR", "IMPORT", "SUB", "SourceBuilder", "dedent", "make_item"]
