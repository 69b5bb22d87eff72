from __future__ import annotations

from pathlib import Path

import pytest

from code_planner.config import (
    ConfigManager, MissingApiKeyError, PlannerConfig, default_app_dir, resolve_api_key,
)


def test_resolve_api_key_prefers_config():
    config = PlannerConfig(gemini_api_key="from-config")
    assert resolve_api_key(config, {"GEMINI_API_KEY": "from-env"}) == "from-config"


def test_resolve_api_key_falls_back_to_env():
    assert resolve_api_key(PlannerConfig(), {"GEMINI_API_KEY": "from-env"}) == "from-env"


def test_resolve_api_key_none():
    assert resolve_api_key(PlannerConfig(), {}) is None
    assert resolve_api_key(PlannerConfig(gemini_api_key=""), {"GEMINI_API_KEY": ""}) is None


def test_ensure_api_key_raises_without_any_source(store):
    with pytest.raises(MissingApiKeyError):
        ConfigManager(store).ensure_api_key(env={})


def test_ensure_api_key_reads_environment(store, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    assert ConfigManager(store).ensure_api_key() == "env-key"


def test_set_api_key_persists(store):
    manager = ConfigManager(store)
    manager.set_api_key("k" * 39)
    assert store.load_config().gemini_api_key == "k" * 39
    assert manager.ensure_api_key(env={}) == "k" * 39


def test_init_config_writes_defaults(store):
    config = ConfigManager(store).init_config()
    assert store.config_path.is_file()
    assert config.max_plans == 50
    assert store.load_config().default_output_dir == config.default_output_dir


def test_reset_config_drops_key(store):
    manager = ConfigManager(store)
    manager.set_api_key("k" * 39)
    manager.reset_config()
    assert store.load_config().gemini_api_key is None


def test_default_app_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("CODE_PLANNER_HOME", str(tmp_path / "custom"))
    assert default_app_dir() == tmp_path / "custom"
    monkeypatch.delenv("CODE_PLANNER_HOME")
    assert default_app_dir() == Path.home() / ".code-planner"
