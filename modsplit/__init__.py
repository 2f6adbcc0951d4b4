"""Split an oversized JavaScript/TypeScript module into grouped files plus a barrel."""

__version__ = "0.1.0"
