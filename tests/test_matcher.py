"""Tests for in-source test block recognition and linking."""

from __future__ import annotations

import pytest

from modsplit.classifier import StatementClassifier
from modsplit.errors import UnsupportedStatementError
from modsplit.matcher import TestHooks, TestMatcher, link_tests
from modsplit.parsing import TreeSitterParser
from tests._fixtures.sources import CALCULATOR, dedent


def _tested_name(parser: TreeSitterParser, source: str, hooks: TestHooks | None = None):
    module = parser.parse(source)
    return TestMatcher(parser, hooks).tested_name(module.statements[0].node, module.source)


def test_single_case_hook_matches_its_name(ts_parser: TreeSitterParser) -> None:
    source = dedent(
        """
        if (import.meta.vitest) {
          const { test, expect } = import.meta.vitest;
          test("add", () => {
            expect(add(1, 2)).toBe(3);
          });
        }
        """
    )
    assert _tested_name(ts_parser, source) == "add"


def test_grouping_hook_takes_precedence(ts_parser: TreeSitterParser) -> None:
    source = dedent(
        """
        if (import.meta.vitest) {
          const { describe, test } = import.meta.vitest;
          describe("sub", () => {
            test("first case", () => {});
            test("second case", () => {});
          });
        }
        """
    )
    assert _tested_name(ts_parser, source) == "sub"


@pytest.mark.parametrize(
    "source",
    [
        # two registrations are ambiguous
        """
        if (import.meta.vitest) {
          const { test } = import.meta.vitest;
          test("add", () => {});
          test("add", () => {});
        }
        """,
        # no registration at all
        """
        if (import.meta.vitest) {
          const { test } = import.meta.vitest;
        }
        """,
        # another guard
        """
        if (import.meta.env) {
          const { test } = import.meta.vitest;
          test("add", () => {});
        }
        """,
        # no destructuring
        """
        if (import.meta.vitest) {
          const vitest = import.meta.vitest;
          vitest.test("add", () => {});
        }
        """,
        # destructured from something else
        """
        if (import.meta.vitest) {
          const { test } = globalThis;
          test("add", () => {});
        }
        """,
        # neither hook destructured
        """
        if (import.meta.vitest) {
          const { it } = import.meta.vitest;
          it("add", () => {});
        }
        """,
        # template literal names are not string literals
        """
        if (import.meta.vitest) {
          const { test } = import.meta.vitest;
          test(`add`, () => {});
        }
        """,
        # grouping hook wins, so the single-case call is not counted
        """
        if (import.meta.vitest) {
          const { describe, test } = import.meta.vitest;
          test("add", () => {});
        }
        """,
        # not a block body
        """
        if (import.meta.vitest) console.log("x");
        """,
    ],
)
def test_uncertain_blocks_are_rejected(ts_parser: TreeSitterParser, source: str) -> None:
    assert _tested_name(ts_parser, dedent(source)) is None


def test_condition_whitespace_is_ignored(ts_parser: TreeSitterParser) -> None:
    source = dedent(
        """
        if ( import.meta.vitest ) {
          // in-source tests
          const { test } = import . meta . vitest;
          test('div', () => {});
        }
        """
    )
    assert _tested_name(ts_parser, source) == "div"


def test_custom_hooks(ts_parser: TreeSitterParser) -> None:
    source = dedent(
        """
        if (import.meta.jest) {
          const { suite } = import.meta.jest;
          suite("mul", () => {});
        }
        """
    )
    hooks = TestHooks(sentinel="import.meta.jest", group_hook="suite", case_hook="spec")
    assert _tested_name(ts_parser, source, hooks) == "mul"
    assert _tested_name(ts_parser, source) is None


def test_match_and_link_calculator(ts_parser: TreeSitterParser) -> None:
    module = ts_parser.parse(CALCULATOR)
    classification = StatementClassifier(ts_parser).classify(module)
    match = TestMatcher(ts_parser).match(classification.candidates, module.source)
    links, failures = link_tests(classification.items, match)

    assert list(links) == ["add"]
    assert links["add"].statement is module.statements[2]
    assert failures == []


def test_link_reports_orphan_and_superseded_blocks(ts_parser: TreeSitterParser) -> None:
    source = dedent(
        """
        function add(a, b) { return a + b; }
        if (import.meta.vitest) {
          const { test } = import.meta.vitest;
          test("add", () => {});
        }
        if (import.meta.vitest) {
          const { test } = import.meta.vitest;
          test("add", () => {});
        }
        if (import.meta.vitest) {
          const { test } = import.meta.vitest;
          test("mul", () => {});
        }
        console.log(add(1, 2));
        """
    )
    module = ts_parser.parse(source)
    classification = StatementClassifier(ts_parser).classify(module)
    match = TestMatcher(ts_parser).match(classification.candidates, module.source)
    links, failures = link_tests(classification.items, match)

    assert links["add"].statement is module.statements[2]
    assert [failure.statement.index for failure in failures] == [1, 3]
    assert all(isinstance(failure.error, UnsupportedStatementError) for failure in failures)
    assert "superseded" in str(failures[0].error)
    assert "'mul'" in str(failures[1].error)
    # the trailing expression is rejected by the classifier, not the matcher
    assert [failure.statement.index for failure in classification.failures] == [4]


@pytest.mark.parametrize(
    ("literal", "expected"),
    [
        (r'"\x41dd"', "Add"),
        (r'"\u0041dd"', "Add"),
        (r'"\u{41}dd"', "Add"),
        (r'"\101dd"', "Add"),
        (r'"a\0b"', "a\x00b"),
        ('"ad\\\nd"', "add"),
        (r"'it\'s'", "it's"),
        (r'"say \"hi\""', 'say "hi"'),
        (r'"tab\there"', "tab\there"),
        (r'"back\\slash"', "back\\slash"),
        (r'"\q"', "q"),
        (r'"\uD83D\uDE00"', "\U0001F600"),
    ],
)
def test_escaped_names_are_decoded(ts_parser: TreeSitterParser, literal: str, expected: str) -> None:
    source = (
        "if (import.meta.vitest) {\n"
        "  const { test } = import.meta.vitest;\n"
        f"  test({literal}, () => {{}});\n"
        "}\n"
    )
    assert _tested_name(ts_parser, source) == expected


def test_escaped_name_links_to_its_declaration(ts_parser: TreeSitterParser) -> None:
    source = dedent(
        r"""
        function Add() {}
        if (import.meta.vitest) {
          const { test } = import.meta.vitest;
          test("\x41dd", () => {});
        }
        """
    )
    module = ts_parser.parse(source)
    classification = StatementClassifier(ts_parser).classify(module)
    match = TestMatcher(ts_parser).match(classification.candidates, module.source)
    links, failures = link_tests(classification.items, match)

    assert links["Add"].statement is module.statements[1]
    assert failures == []
