"""Tests for configuration models and ConfigManager."""

import json

import pytest

from terasky_insights.config import Config, ConfigManager
from terasky_insights.errors import ConfigurationError


class TestConfigDefaults:
    def test_defaults_match_workflow_policy(self):
        config = Config()

        assert config.container.name == "terasky-insights"
        assert config.container.ports == [9193, 9194]
        assert config.readiness.max_attempts == 30
        assert config.readiness.interval == 2.0
        assert config.progress.interval == 0.1
        assert config.workflow.retry_service_restart is True
        assert config.workflow.wait_for_readiness is True
        assert config.workflow.fail_on_readiness_timeout is False
        assert config.engine.candidates == ["docker", "podman", "containerd", "runc"]
        assert config.progress.spinner == "line"
        assert config.dashboard_url == "http://localhost:9194"

    def test_empty_engine_candidates_rejected(self):
        with pytest.raises(ValueError):
            Config(engine={"candidates": []})

    def test_unknown_spinner_rejected(self):
        with pytest.raises(ValueError):
            Config(progress={"spinner": "no-such-spinner"})

    def test_packages_are_not_configurable(self):
        assert "packages" not in Config.model_fields


class TestConfigManager:
    def test_missing_file_yields_defaults(self, tmp_path):
        manager = ConfigManager(tmp_path / "config.json")

        assert manager.load() == Config()
        assert not manager.config_path.exists()

    def test_manager_is_read_only(self):
        assert not hasattr(ConfigManager, "save")
        assert not hasattr(ConfigManager, "get_config")

    def test_load_overrides(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"readiness": {"max_attempts": 5, "interval": 0.5}}))

        config = ConfigManager(path).load()

        assert config.readiness.max_attempts == 5
        assert config.readiness.interval == 0.5
        assert config.container.name == "terasky-insights"

    def test_invalid_file_raises_configuration_error(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")

        with pytest.raises(ConfigurationError, match="Failed to load config"):
            ConfigManager(path).load()

    def test_invalid_values_raise_configuration_error(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"readiness": {"max_attempts": 0}}))

        with pytest.raises(ConfigurationError):
            ConfigManager(path).load()

    def test_backtrack_finds_parent_config(self, tmp_path):
        config_dir = tmp_path / ".terasky-insights"
        config_dir.mkdir()
        (config_dir / "config.json").write_text("{}")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        manager = ConfigManager.create_with_backtrack(nested)

        assert manager.config_path == config_dir / "config.json"

    def test_backtrack_defaults_to_start_dir(self, tmp_path):
        manager = ConfigManager.create_with_backtrack(tmp_path)

        assert manager.config_path == tmp_path / ".terasky-insights" / "config.json"
