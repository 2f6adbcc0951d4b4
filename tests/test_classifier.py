"""Tests for modsplit.classifier."""

from __future__ import annotations

import pytest

from modsplit.classifier import StatementClassifier, statement_kind
from modsplit.errors import DuplicateNameError, NameExtractionError, UnsupportedStatementError
from modsplit.models import StatementKind
from modsplit.parsing import TreeSitterParser
from tests._fixtures.sources import CALCULATOR, dedent


def _classify(parser: TreeSitterParser, source: str):
    module = parser.parse(source)
    return module, StatementClassifier(parser).classify(module)


def test_plain_module_is_fully_classified(ts_parser: TreeSitterParser) -> None:
    source = dedent(
        """
        import fs from "node:fs";
        import { join } from "node:path";
        const root = join("a", "b");
        let counter = 0;
        var legacy = true;
        function read(path) { return fs.readFileSync(path); }
        async function load() { return read(root); }
        function* ids() { yield counter++; }
        export const VERSION = "1.0";
        export function write(path, data) { fs.writeFileSync(path, data); }
        """
    )
    module, result = _classify(ts_parser, source)

    assert len(result.imports) == 2
    assert [item.name for item in result.items] == [
        "root",
        "counter",
        "legacy",
        "read",
        "load",
        "ids",
        "VERSION",
        "write",
    ]
    assert result.candidates == []
    assert result.failures == []
    assert len(result.imports) + len(result.items) == len(module)


def test_items_carry_signatures(ts_parser: TreeSitterParser) -> None:
    _, result = _classify(ts_parser, CALCULATOR)

    signatures = {item.name: item.signature for item in result.items}
    assert signatures == {
        "add": "function add(a: number, b: number): number { ... }",
        "sub": "export function sub(a: number, b: number): number { ... }",
    }
    assert [statement.node_type for statement in result.candidates] == ["if_statement"]


def test_only_first_binding_names_a_declaration(ts_parser: TreeSitterParser) -> None:
    _, result = _classify(ts_parser, "const first = 1, second = 2;\n")

    assert [item.name for item in result.items] == ["first"]


@pytest.mark.parametrize(
    ("source", "message"),
    [
        ("const { a, b } = obj;\n", "Unsupported variable declaration"),
        ("let [head] = list;\n", "Unsupported variable declaration"),
        ("export { x };\n", "Unsupported export named declaration without declaration"),
        ('export { y } from "./y";\n', "Unsupported export named declaration without declaration"),
        ("export class Store {}\n", "Unsupported item type for naming: class_declaration"),
        ("export interface Shape { size: number }\n", "Unsupported item type for naming"),
    ],
)
def test_unnameable_declarations_are_collected(ts_parser: TreeSitterParser, source: str, message: str) -> None:
    module, result = _classify(ts_parser, source)

    assert result.items == []
    assert len(result.failures) == 1
    failure = result.failures[0]
    assert failure.statement is module.statements[0]
    assert isinstance(failure.error, NameExtractionError)
    assert message in str(failure.error)


@pytest.mark.parametrize(
    "source",
    [
        'console.log("side effect");\n',
        "class Store {}\n",
        "export default function () {}\n",
        'export * from "./other";\n',
        "type Id = string;\n",
    ],
)
def test_other_statements_are_unsupported(ts_parser: TreeSitterParser, source: str) -> None:
    module, result = _classify(ts_parser, source)

    assert statement_kind(module.statements[0]) is StatementKind.OTHER
    assert len(result.failures) == 1
    assert isinstance(result.failures[0].error, UnsupportedStatementError)


def test_duplicate_names_are_rejected(ts_parser: TreeSitterParser) -> None:
    source = dedent(
        """
        function helper() {}
        const other = 1;
        export const helper2 = 2;
        var helper = 3;
        """
    )
    module, result = _classify(ts_parser, source)

    assert [item.name for item in result.items] == ["helper", "other", "helper2"]
    assert len(result.failures) == 1
    failure = result.failures[0]
    assert failure.statement is module.statements[3]
    assert isinstance(failure.error, DuplicateNameError)
    assert failure.error.first_line == 1


def test_statement_kinds(ts_parser: TreeSitterParser) -> None:
    module = ts_parser.parse(CALCULATOR)

    assert [statement_kind(statement) for statement in module.statements] == [
        StatementKind.IMPORT,
        StatementKind.NAMED_ITEM,
        StatementKind.CONDITIONAL_BLOCK,
        StatementKind.NAMED_ITEM,
    ]
