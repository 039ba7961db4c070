"""Configuration loader for pdf-page-cache."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from page_cache.domain.errors import ConfigError


class AppConfig(BaseModel):
    name: str = Field(default="pdf-page-cache")
    environment: str = Field(default="development")


class RenderConfig(BaseModel):
    # threads for interactive renders; prefetch runs on an extra one
    box_width: float = Field(default=240.0, gt=0)
    box_height: float = Field(default=240.0, gt=0)
    workers: int = Field(default=3, ge=1)


class CacheConfig(BaseModel):
    policy: Literal["lru", "unbounded"] = Field(default="lru")
    max_bytes: Optional[int] = Field(default=64 * 1024 * 1024, gt=0)
    max_entries: Optional[int] = Field(default=None, gt=0)


class PrefetchConfig(BaseModel):
    enabled: bool = Field(default=True)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")


class Settings(BaseModel):
    app: AppConfig = Field(default_factory=AppConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    prefetch: PrefetchConfig = Field(default_factory=PrefetchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


DEFAULT_CONFIG_PATH = Path("config/default.yaml")

_BOOL_KEYS = {"enabled"}
_INT_KEYS = {"workers", "max_bytes", "max_entries"}
_FLOAT_KEYS = {"box_width", "box_height"}


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")
    return data


def _apply_env_overrides(data: dict) -> dict:
    overrides = {
        ("app", "environment"): os.getenv("APP_ENV"),
        ("logging", "level"): os.getenv("LOG_LEVEL"),
        ("render", "box_width"): os.getenv("RENDER_BOX_WIDTH"),
        ("render", "box_height"): os.getenv("RENDER_BOX_HEIGHT"),
        ("render", "workers"): os.getenv("RENDER_WORKERS"),
        ("cache", "policy"): os.getenv("CACHE_POLICY"),
        ("cache", "max_bytes"): os.getenv("CACHE_MAX_BYTES"),
        ("cache", "max_entries"): os.getenv("CACHE_MAX_ENTRIES"),
        ("prefetch", "enabled"): os.getenv("PREFETCH_ENABLED"),
    }
    for (section, key), value in overrides.items():
        if value is None:
            continue
        if section not in data or data[section] is None:
            data[section] = {}
        if key in _BOOL_KEYS:
            data[section][key] = str(value).strip().lower() in {"1", "true", "yes", "on"}
            continue
        if key in _INT_KEYS:
            try:
                data[section][key] = int(value)
                continue
            except ValueError:
                # left as a string so validation reports it
                pass
        if key in _FLOAT_KEYS:
            try:
                data[section][key] = float(value)
                continue
            except ValueError:
                pass
        data[section][key] = value
    return data


def load_config(path: Optional[Path] = None) -> Settings:
    """Load configuration from YAML and environment variables.

    An explicit ``path`` must exist; a missing default file means built-in
    defaults.
    """
    load_dotenv()
    if path is not None:
        raw = _load_yaml(Path(path))
    elif DEFAULT_CONFIG_PATH.exists():
        raw = _load_yaml(DEFAULT_CONFIG_PATH)
    else:
        raw = {}
    merged = _apply_env_overrides(raw)
    try:
        return Settings(**merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


__all__ = [
    "Settings",
    "AppConfig",
    "RenderConfig",
    "CacheConfig",
    "PrefetchConfig",
    "LoggingConfig",
    "load_config",
]
