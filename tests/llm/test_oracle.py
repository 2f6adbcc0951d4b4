"""Tests for the LLM-backed classification oracle."""

from __future__ import annotations

import asyncio

import pytest

from modsplit.errors import SplitError
from modsplit.llm.oracle import LLMOracle, parse_assignment, parse_labels
from modsplit.llm.runner import LLMRunner
from tests._fixtures.sources import make_item

ITEMS = [make_item("add", 0, "function add(a, b) { ... }"), make_item("fetchUser", 1)]


def _collect(oracle: LLMOracle, labels=None):
    async def run():
        return [pair async for pair in oracle.classify(ITEMS, labels)]

    return asyncio.run(run())


def test_classify_streams_pairs_and_skips_noise() -> None:
    captured = {}

    def fake_runner(request):
        captured["prompt"] = request.prompt
        captured["system"] = request.system
        return "\n".join(
            [
                "Here you go:",
                "```json",
                '{"name": "add", "label": " math "}',
                '{"name": "fetchUser"',
                '{"name": "fetchUser", "label": "http", "confidence": 0.9},',
                "```",
            ]
        )

    oracle = LLMOracle(LLMRunner(model="m", base_url=None, runner=fake_runner))
    pairs = _collect(oracle, ["math", "http"])

    assert pairs == [("add", "math"), ("fetchUser", "http")]
    assert "Use only these category labels: math, http." in captured["prompt"]
    assert "- add: function add(a, b) { ... }" in captured["prompt"]
    assert "- fetchUser: fetchUser" in captured["prompt"]
    assert captured["system"]


def test_classify_without_labels_asks_for_open_vocabulary() -> None:
    captured = {}

    def fake_runner(request):
        captured["prompt"] = request.prompt
        return '{"name": "add", "label": "math"}'

    oracle = LLMOracle(LLMRunner(model="m", base_url=None, runner=fake_runner))

    assert _collect(oracle) == [("add", "math")]
    assert "Use only these category labels" not in captured["prompt"]


def test_discover_labels_parses_the_array() -> None:
    runner = LLMRunner(
        model="m",
        base_url=None,
        runner=lambda request: 'Sure! ["math", " io ", ""] hope that helps',
    )

    labels = asyncio.run(LLMOracle(runner).discover_labels(ITEMS))
    assert labels == ["math", "io"]


def test_parse_assignment() -> None:
    record = parse_assignment('  {"name": "add", "label": "math"} ')

    assert record is not None
    assert (record.name, record.label) == ("add", "math")
    assert parse_assignment("```") is None
    assert parse_assignment('{"name": "add"}') is None
    assert parse_assignment("{not json") is None


def test_parse_labels_rejects_answers_without_an_array() -> None:
    with pytest.raises(SplitError, match="no JSON array"):
        parse_labels("utils, services")
    with pytest.raises(SplitError, match="invalid label list"):
        parse_labels("[1, {}]")
