"""Configuration loading for repodoctor (.repodoctor.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".repodoctor.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class RuleConfig:
    """Rule enablement settings."""

    disabled: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)


@dataclass
class DoctorConfig:
    """Represents the settings defined in .repodoctor.yml."""

    root: Path
    rules: RuleConfig = field(default_factory=RuleConfig)
    exclude_paths: List[str] = field(default_factory=list)
    workers: Optional[int] = None


def load_config(config_path: Path) -> DoctorConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DoctorConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    rules_data = _as_dict(data.get("rules"))
    rules = RuleConfig()
    if rules_data:
        rules.disabled = _as_str_list(rules_data.get("disabled"))
        rules.categories = [item.lower() for item in _as_str_list(rules_data.get("categories"))]

    workers = _as_int(data.get("workers"))
    if workers is not None and workers < 1:
        workers = None

    return DoctorConfig(
        root=root,
        rules=rules,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        workers=workers,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float)) and not isinstance(item, bool)]
    return []


__all__ = ["CONFIG_FILENAME", "ConfigError", "DoctorConfig", "RuleConfig", "load_config"]
