from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from modsplit.parsing import TreeSitterParser
from tests._fixtures.sources import SourceBuilder


@pytest.fixture
def source_builder(tmp_path: Path) -> SourceBuilder:
    """Provide a builder that writes module files under the pytest tmp_path."""
    return SourceBuilder(tmp_path)


@pytest.fixture
def ts_parser() -> TreeSitterParser:
    return TreeSitterParser("typescript")


@pytest.fixture(autouse=True)
def _reset_modsplit_logger() -> Iterator[None]:
    """Drop handlers the CLI installs so they do not outlive captured streams."""
    yield
    logger = logging.getLogger("modsplit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
