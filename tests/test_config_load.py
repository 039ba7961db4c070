from pathlib import Path

import pytest

from page_cache import config as config_mod
from page_cache.config import load_config
from page_cache.domain.errors import ConfigError


def test_load_config(tmp_path: Path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
app:
  name: test-app
  environment: test

render:
  box_width: 320
  box_height: 200
  workers: 2

cache:
  policy: lru
  max_bytes: 1048576

logging:
  level: DEBUG
""",
        encoding="utf-8",
    )
    monkeypatch.setenv("RENDER_WORKERS", "5")
    monkeypatch.setenv("PREFETCH_ENABLED", "no")
    settings = load_config(config_path)
    assert settings.app.name == "test-app"
    assert settings.render.box_width == 320
    assert settings.render.workers == 5
    assert settings.cache.max_bytes == 1048576
    assert settings.cache.max_entries is None
    assert settings.prefetch.enabled is False
    assert settings.logging.level == "DEBUG"


def test_missing_default_file_uses_defaults(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(config_mod, "DEFAULT_CONFIG_PATH", tmp_path / "absent.yaml")
    settings = load_config()
    assert settings.render.box_width == 240
    assert settings.render.workers == 3
    assert settings.cache.policy == "lru"
    assert settings.prefetch.enabled is True


def test_missing_explicit_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


def test_invalid_env_value_raises_config_error(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(config_mod, "DEFAULT_CONFIG_PATH", tmp_path / "absent.yaml")
    monkeypatch.setenv("RENDER_WORKERS", "many")
    with pytest.raises(ConfigError):
        load_config()


def test_invalid_yaml_raises_config_error(tmp_path: Path):
    config_path = tmp_path / "bad.yaml"
    config_path.write_text("render: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(config_path)


def test_unknown_cache_policy_rejected(tmp_path: Path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("cache:\n  policy: random\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(config_path)
