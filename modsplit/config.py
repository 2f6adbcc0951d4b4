"""Configuration loading for modsplit (.modsplit.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".modsplit.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LLMConfig:
    """LLM runtime settings used by the oracle categorizers."""

    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    request_timeout: Optional[float] = None
    allow_remote: bool = False
    templates_dir: Optional[Path] = None


@dataclass
class CategorizeConfig:
    """Categorizer policy selection and its inputs."""

    policy: str = "open"
    labels: List[str] = field(default_factory=list)
    mapping: Dict[str, str] = field(default_factory=dict)
    default: Optional[str] = None
    seed: Optional[int] = None


@dataclass
class InlineTestConfig:
    """Shape of the in-source test idiom to recognise."""

    sentinel: str = "import.meta.vitest"
    group_hook: str = "describe"
    case_hook: str = "test"


@dataclass
class ModSplitConfig:
    """Represents the settings defined in .modsplit.yml."""

    root: Path
    llm: Optional[LLMConfig] = None
    categorize: CategorizeConfig = field(default_factory=CategorizeConfig)
    inline_tests: InlineTestConfig = field(default_factory=InlineTestConfig)


def load_config(config_path: Path) -> ModSplitConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ModSplitConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    llm_data = _as_dict(data.get("llm"))
    llm = None
    if llm_data:
        templates_dir_str = _as_str(llm_data.get("templates_dir"))
        llm = LLMConfig(
            model=_as_str(llm_data.get("model")),
            temperature=_as_float(llm_data.get("temperature")),
            max_tokens=_as_int(llm_data.get("max_tokens")),
            base_url=_as_str(llm_data.get("base_url")),
            api_key=_as_str(llm_data.get("api_key")),
            request_timeout=_as_float(llm_data.get("request_timeout")),
            allow_remote=_as_bool(llm_data.get("allow_remote")) or False,
            templates_dir=root / templates_dir_str if templates_dir_str else None,
        )

    categorize_data = _as_dict(data.get("categorize"))
    categorize = CategorizeConfig()
    if categorize_data:
        policy = _as_str(categorize_data.get("policy"))
        if policy:
            categorize.policy = policy.lower()
        categorize.labels = _as_str_list(categorize_data.get("labels"))
        categorize.mapping = _as_str_mapping(categorize_data.get("mapping"))
        categorize.default = _as_str(categorize_data.get("default"))
        categorize.seed = _as_int(categorize_data.get("seed"))

    tests_data = _as_dict(data.get("inline_tests"))
    inline_tests = InlineTestConfig()
    if tests_data:
        inline_tests.sentinel = _as_str(tests_data.get("sentinel")) or inline_tests.sentinel
        inline_tests.group_hook = _as_str(tests_data.get("group_hook")) or inline_tests.group_hook
        inline_tests.case_hook = _as_str(tests_data.get("case_hook")) or inline_tests.case_hook

    return ModSplitConfig(
        root=root,
        llm=llm,
        categorize=categorize,
        inline_tests=inline_tests,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME and config_path.suffix not in {".yml", ".yaml"}:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


def _as_str_mapping(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {
        str(key): str(item)
        for key, item in value.items()
        if isinstance(item, (str, int, float, bool))
    }


__all__ = [
    "CONFIG_FILENAME",
    "CategorizeConfig",
    "ConfigError",
    "InlineTestConfig",
    "LLMConfig",
    "ModSplitConfig",
    "load_config",
]
