"""Categorizer policies and lookup by policy name."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, List, Optional

from ..config import CategorizeConfig
from .base import Categorizer, ProgressCallback, commit
from .oracle import ClosedVocabularyCategorizer, OpenVocabularyCategorizer, Oracle
from .randomized import DEFAULT_LABELS, RandomCategorizer
from .static import StaticCategorizer

_ENTRY_POINT_GROUP = "modsplit.categorizers"

OracleFactory = Callable[[], Oracle]


def _build_random(settings: CategorizeConfig, oracle_factory: Optional[OracleFactory]) -> Categorizer:
    return RandomCategorizer(settings.labels or DEFAULT_LABELS, seed=settings.seed)


def _build_static(settings: CategorizeConfig, oracle_factory: Optional[OracleFactory]) -> Categorizer:
    if not settings.mapping and settings.default is None:
        raise ValueError("The static policy needs a 'mapping' or a 'default' label")
    return StaticCategorizer(settings.mapping, default=settings.default)


def _build_open(settings: CategorizeConfig, oracle_factory: Optional[OracleFactory]) -> Categorizer:
    return OpenVocabularyCategorizer(_require_oracle("open", oracle_factory))


def _build_closed(settings: CategorizeConfig, oracle_factory: Optional[OracleFactory]) -> Categorizer:
    return ClosedVocabularyCategorizer(
        _require_oracle("closed", oracle_factory), settings.labels or None
    )


_BUILTIN_FACTORIES: Dict[str, Callable[[CategorizeConfig, Optional[OracleFactory]], Categorizer]] = {
    "random": _build_random,
    "static": _build_static,
    "open": _build_open,
    "closed": _build_closed,
}


def available_policies() -> List[str]:
    """Return built-in policy names followed by installed plugin names."""
    names = list(_BUILTIN_FACTORIES)
    for entry in _iter_entry_points():
        if entry.name.lower() not in names:
            names.append(entry.name.lower())
    return names


def build_categorizer(
    policy: str,
    settings: CategorizeConfig | None = None,
    *,
    oracle_factory: Optional[OracleFactory] = None,
) -> Categorizer:
    """Instantiate the categorizer registered under ``policy``."""
    key = policy.lower()
    settings = settings or CategorizeConfig(policy=key)
    factory = _BUILTIN_FACTORIES.get(key)
    if factory is not None:
        return factory(settings, oracle_factory)

    for entry in _iter_entry_points():
        if entry.name.lower() != key:
            continue
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - broken plugin install
            raise RuntimeError(f"Failed to load categorizer entry point '{entry.name}': {exc}") from exc
        return _coerce_categorizer(loaded)

    raise ValueError(
        f"Unknown categorizer policy '{policy}' (available: {', '.join(available_policies())})"
    )


def _require_oracle(policy: str, oracle_factory: Optional[OracleFactory]) -> Oracle:
    if oracle_factory is None:
        raise ValueError(f"The {policy} policy needs a classification oracle")
    return oracle_factory()


def _coerce_categorizer(obj: object) -> Categorizer:
    if isinstance(obj, Categorizer):
        return obj
    if isinstance(obj, type) and issubclass(obj, Categorizer):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Categorizer):
            return instance
    raise TypeError("Categorizer entry point must be a Categorizer subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "Categorizer",
    "ClosedVocabularyCategorizer",
    "OpenVocabularyCategorizer",
    "Oracle",
    "ProgressCallback",
    "RandomCategorizer",
    "StaticCategorizer",
    "available_policies",
    "build_categorizer",
    "commit",
]
