"""Configuration loader for the theme cache manager."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from .errors import ConfigError
from .origins import FEATURE_SCOPED_ORIGINS, Origin, coerce_origin

DRIFT_ANY_CHANGE = "any_change"
DRIFT_INCREASE_ONLY = "increase_only"
DRIFT_POLICIES = (DRIFT_ANY_CHANGE, DRIFT_INCREASE_ONLY)


@dataclass(frozen=True)
class CacheConfig:
    drift_policy: str = DRIFT_ANY_CHANGE
    thread_safe: bool = False
    event_log_size: int = 100
    invalidate_on_event: Tuple[Origin, ...] = FEATURE_SCOPED_ORIGINS

    def __post_init__(self) -> None:
        if self.drift_policy not in DRIFT_POLICIES:
            raise ConfigError(
                f"drift_policy must be one of {', '.join(DRIFT_POLICIES)}, got {self.drift_policy!r}"
            )
        if self.event_log_size <= 0:
            raise ConfigError(f"event_log_size must be positive, got {self.event_log_size}")
        if len(set(self.invalidate_on_event)) != len(self.invalidate_on_event):
            raise ConfigError(f"invalidate_on_event has duplicate origins: {self.invalidate_on_event}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheConfig":
        origins = data.get("invalidate_on_event")
        if origins is None:
            scoped = FEATURE_SCOPED_ORIGINS
        else:
            try:
                # Collapse repeats, keeping the first position.
                scoped = tuple(dict.fromkeys(coerce_origin(o) for o in origins))
            except ValueError as exc:
                raise ConfigError(f"invalidate_on_event: {exc}") from exc
        return cls(
            drift_policy=str(data.get("drift_policy", DRIFT_ANY_CHANGE)),
            thread_safe=_to_bool(data.get("thread_safe", False)),
            event_log_size=_to_int("event_log_size", data.get("event_log_size", 100)),
            invalidate_on_event=scoped,
        )


ENV_MAP = {
    "drift_policy": "THEME_CACHE_DRIFT_POLICY",
    "thread_safe": "THEME_CACHE_THREAD_SAFE",
    "event_log_size": "THEME_CACHE_EVENT_LOG_SIZE",
}


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _to_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def merge_env_overrides(config_data: Dict[str, Any]) -> Dict[str, Any]:
    merged = json.loads(json.dumps(config_data))  # deep copy via json

    for key, env_name in ENV_MAP.items():
        if env_name not in os.environ:
            continue
        value: Any = os.environ[env_name]
        if key == "event_log_size":
            value = _to_int(env_name, value)
        elif key == "thread_safe":
            value = _to_bool(value)
        merged[key] = value

    return merged


def load_config(config_path: str | Path = "config/theme_cache.defaults.yml") -> CacheConfig:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    data = load_yaml(path)
    data = merge_env_overrides(data)
    return CacheConfig.from_dict(data)
