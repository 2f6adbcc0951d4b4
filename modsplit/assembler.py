"""Reassemble categorized items into per-category files and a barrel index."""

from __future__ import annotations

import re
from typing import Dict, List, Mapping, Optional, Sequence

from .errors import CategorizationIncompletenessError, InvalidCategoryError
from .logging import get_logger
from .models import Categorization, Category, NamedItem, OutputFile, Statement, TestBlock

INDEX_STEM = "index"

_UNSAFE_PATH_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def category_filename(label: str) -> str:
    """Turn a label into a file stem, replacing characters unsafe in paths."""
    cleaned = _UNSAFE_PATH_CHARS.sub("-", label.strip()).strip("-.")
    if not cleaned:
        raise InvalidCategoryError(f"Category label '{label}' has no usable file name")
    if cleaned.lower() == INDEX_STEM:
        raise InvalidCategoryError(f"Category label '{label}' collides with the {INDEX_STEM} file")
    return cleaned


def group_items(items: Sequence[NamedItem], categorization: Categorization) -> List[Category]:
    """Group items per label, in the categorization's label order, skipping empty labels."""
    categories: Dict[str, Category] = {label: Category(label) for label in categorization.labels}
    for item in items:
        label = categorization.assignments.get(item.name)
        if label is None:
            raise CategorizationIncompletenessError([item.name])
        categories.setdefault(label, Category(label)).items.append(item)
    return [category for category in categories.values() if category.items]


class FileAssembler:
    """Builds the output files for one split."""

    def __init__(self, stem: str, ext: str) -> None:
        self.stem = stem
        self.ext = ext
        self.logger = get_logger("assembler")

    def assemble(
        self,
        imports: Sequence[Statement],
        categories: Sequence[Category],
        tests: Mapping[str, TestBlock],
        hashbang: Optional[str] = None,
    ) -> List[OutputFile]:
        header = ((hashbang,) if hashbang else ()) + tuple(statement.text for statement in imports)
        filenames = self._filenames(categories)

        files: List[OutputFile] = []
        exports: List[str] = []
        for category in categories:
            filename = f"{filenames[category.label]}.{self.ext}"
            blocks: List[str] = []
            for item in category.items:
                block = tests.get(item.name)
                blocks.append(item.text if block is None else f"{item.text}\n\n{block.text}")
            files.append(OutputFile(path=self._path(filename), header=header, blocks=tuple(blocks)))
            exports.append(f'export * from "./{filename}";')
            self.logger.debug("Category '%s': %d items", category.label, len(category.items))

        index_blocks = ("\n".join(exports),) if exports else ()
        files.append(
            OutputFile(path=self._path(f"{INDEX_STEM}.{self.ext}"), header=header, blocks=index_blocks)
        )
        return files

    def _path(self, filename: str) -> str:
        return f"{self.stem}/{filename}"

    @staticmethod
    def _filenames(categories: Sequence[Category]) -> Dict[str, str]:
        filenames: Dict[str, str] = {}
        owners: Dict[str, str] = {}
        for category in categories:
            filename = category_filename(category.label)
            key = filename.lower()
            if key in owners:
                raise InvalidCategoryError(
                    f"Category labels '{owners[key]}' and '{category.label}' map to the same file"
                )
            owners[key] = category.label
            filenames[category.label] = filename
        return filenames


__all__ = ["FileAssembler", "INDEX_STEM", "category_filename", "group_items"]
