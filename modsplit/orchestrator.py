"""Pipeline orchestration: parse, classify, gate, categorize, assemble, write."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from . import gate
from .assembler import INDEX_STEM, FileAssembler, group_items
from .categorizers import Categorizer, ProgressCallback
from .classifier import StatementClassifier
from .config import LLMConfig
from .llm import LLMOracle, LLMRunner
from .logging import get_logger
from .matcher import TestHooks, TestMatcher, link_tests
from .models import NamedItem, SourceModule, Statement, StatementFailure, TestBlock
from .parsing import SourceParser, TreeSitterParser
from .prompting import PromptBuilder

ParserFactory = Callable[[str], SourceParser]


@dataclass
class ModuleAnalysis:
    """Everything known about a module before categorization."""

    module: SourceModule
    imports: List[Statement] = field(default_factory=list)
    items: List[NamedItem] = field(default_factory=list)
    tests: Dict[str, TestBlock] = field(default_factory=dict)
    failures: List[StatementFailure] = field(default_factory=list)

    @property
    def placed_count(self) -> int:
        return len(self.imports) + len(self.items) + len(self.tests)


@dataclass
class SplitOutcome:
    """Result of splitting one file on disk."""

    root: Path
    files: Dict[str, str]
    categories: List[str]
    dry_run: bool


def split_filename(path: Path) -> Tuple[str, str]:
    """Return the stem and the joined remaining dot-segments of ``path``'s name."""
    stem, _, ext = path.name.partition(".")
    if not stem or not ext:
        raise ValueError(f"Cannot derive an output directory and extension from '{path.name}'")
    return stem, ext


class Orchestrator:
    """Coordinates one splitting run."""

    def __init__(
        self,
        parser_factory: ParserFactory | None = None,
        hooks: TestHooks | None = None,
    ) -> None:
        self._parser_factory = parser_factory or TreeSitterParser.for_extension
        self.hooks = hooks or TestHooks()
        self.logger = get_logger("orchestrator")

    def analyze(self, source_text: str, ext: str) -> ModuleAnalysis:
        """Parse and classify a module without categorizing or writing anything."""
        parser = self._parser_factory(ext)
        module = parser.parse(source_text)
        classification = StatementClassifier(parser).classify(module)
        match = TestMatcher(parser, self.hooks).match(classification.candidates, module.source)
        tests, test_failures = link_tests(classification.items, match)

        failures = sorted(
            classification.failures + test_failures,
            key=lambda failure: failure.statement.index,
        )
        analysis = ModuleAnalysis(
            module=module,
            imports=classification.imports,
            items=classification.items,
            tests=tests,
            failures=failures,
        )
        self.logger.debug(
            "%d statements: %d imports, %d items, %d tests, %d unsupported",
            len(module),
            len(analysis.imports),
            len(analysis.items),
            len(analysis.tests),
            len(analysis.failures),
        )
        return analysis

    async def split(
        self,
        source_text: str,
        stem: str,
        ext: str,
        categorizer: Categorizer,
        *,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, str]:
        """Return ``relative path -> file text`` for the split of ``source_text``."""
        analysis = self.analyze(source_text, ext)
        gate.enforce(analysis.failures)

        categorization = await categorizer.categorize(analysis.items, on_progress=on_progress)
        self.logger.info("Categories: %s", ", ".join(categorization.labels) or "(none)")
        categories = group_items(analysis.items, categorization)
        files = FileAssembler(stem, ext).assemble(
            analysis.imports, categories, analysis.tests, hashbang=analysis.module.hashbang
        )
        return {output.path: output.render() for output in files}

    def run_split(
        self,
        path: str | Path,
        categorizer: Categorizer,
        *,
        dry_run: bool = False,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SplitOutcome:
        """Split the file at ``path`` into a sibling directory named after its stem."""
        source_path = Path(path).expanduser().resolve()
        stem, ext = split_filename(source_path)
        source_text = source_path.read_text(encoding="utf-8")
        self.logger.info("Splitting %s", source_path)

        files = asyncio.run(
            self.split(source_text, stem, ext, categorizer, on_progress=on_progress)
        )
        root = source_path.parent / stem
        suffix = f".{ext}"
        categories = [
            name[: -len(suffix)]
            for name in (Path(relative).name for relative in files)
            if name != f"{INDEX_STEM}{suffix}"
        ]
        if not dry_run:
            self.logger.info("creating %s", root)
            root.mkdir(parents=True, exist_ok=True)
            for relative, contents in files.items():
                target = source_path.parent / relative
                self.logger.info("writing %s", target)
                target.write_text(contents, encoding="utf-8")
        return SplitOutcome(root=root, files=files, categories=categories, dry_run=dry_run)


def build_llm_oracle(llm_cfg: LLMConfig | None) -> LLMOracle:
    """Create the LLM-backed oracle from the ``llm`` config section."""
    llm_cfg = llm_cfg or LLMConfig()
    kwargs: Dict[str, object] = {"allow_remote": llm_cfg.allow_remote}
    if llm_cfg.model:
        kwargs["model"] = llm_cfg.model
    if llm_cfg.base_url is not None:
        kwargs["base_url"] = llm_cfg.base_url
    if llm_cfg.temperature is not None:
        kwargs["temperature"] = llm_cfg.temperature
    if llm_cfg.max_tokens is not None:
        kwargs["max_tokens"] = llm_cfg.max_tokens
    if llm_cfg.api_key is not None:
        kwargs["api_key"] = llm_cfg.api_key
    if llm_cfg.request_timeout is not None:
        kwargs["request_timeout"] = llm_cfg.request_timeout
    runner = LLMRunner(**kwargs)  # type: ignore[arg-type]
    return LLMOracle(runner, PromptBuilder(llm_cfg.templates_dir))


async def split_module(
    source_text: str,
    stem: str,
    ext: str,
    categorizer: Categorizer,
    *,
    hooks: TestHooks | None = None,
    on_progress: Optional[ProgressCallback] = None,
) -> Dict[str, str]:
    """Split ``source_text`` and return ``relative path -> file text``."""
    return await Orchestrator(hooks=hooks).split(
        source_text, stem, ext, categorizer, on_progress=on_progress
    )


def run(
    source_text: str,
    stem: str,
    ext: str,
    categorizer: Categorizer,
    *,
    hooks: TestHooks | None = None,
) -> Dict[str, str]:
    """Synchronous wrapper around :func:`split_module`."""
    return asyncio.run(split_module(source_text, stem, ext, categorizer, hooks=hooks))


__all__ = [
    "ModuleAnalysis",
    "Orchestrator",
    "SplitOutcome",
    "build_llm_oracle",
    "run",
    "split_filename",
    "split_module",
]
