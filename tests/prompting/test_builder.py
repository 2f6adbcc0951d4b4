"""Tests for the prompt builder."""

from __future__ import annotations

from pathlib import Path

from modsplit.prompting import PromptBuilder
from modsplit.prompting.constants import MAX_DISCOVERED_LABELS, MIN_DISCOVERED_LABELS
from tests._fixtures.sources import make_item


def test_discover_prompt_lists_declarations() -> None:
    messages = PromptBuilder().discover([make_item("add", 0, "function add() { ... }")])

    assert [message.role for message in messages] == ["system", "user"]
    content = messages[1].content
    assert f"between {MIN_DISCOVERED_LABELS} and {MAX_DISCOVERED_LABELS}" in content
    assert "- add: function add() { ... }" in content
    assert "JSON array" in content


def test_custom_templates_override_defaults(tmp_path: Path) -> None:
    (tmp_path / "classify.j2").write_text(
        "{% for item in items %}{{ item.name }}={{ labels | join('|') }}\n{% endfor %}",
        encoding="utf-8",
    )
    builder = PromptBuilder(templates_dir=tmp_path)

    messages = builder.classify([make_item("add"), make_item("sub", 1)], ["a", "b"])
    assert messages[1].content == "add=a|b\nsub=a|b"
    # templates missing from the custom directory fall back to the packaged ones
    assert "JSON array" in builder.discover([make_item("add")])[1].content
