"""Prompt construction for the LLM oracle."""

from .builder import PromptBuilder, PromptMessage

__all__ = ["PromptBuilder", "PromptMessage"]
