"""LLM runner adapters and the oracle built on them."""

from .oracle import LLMOracle
from .runner import LLMRunner

__all__ = ["LLMOracle", "LLMRunner"]
