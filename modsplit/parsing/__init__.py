"""Parser backends that turn module source into top-level statements."""

from .base import SourceParser
from .tree_sitter import TreeSitterParser, language_for_extension

__all__ = ["SourceParser", "TreeSitterParser", "language_for_extension"]
