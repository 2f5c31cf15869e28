"""Tests for gentyr.config: centralized configuration."""

from pathlib import Path

import pytest

from gentyr.config import Config, get_config, reset_config


class TestConfig:
    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        cfg = get_config()
        assert cfg.project_dir == tmp_path
        assert cfg.secret_cli == "op"
        assert cfg.resolve_timeout == 15.0
        assert cfg.health_timeout == 5.0
        assert cfg.log_level == "WARNING"

    def test_derived_paths(self, tmp_path):
        cfg = Config(project_dir=tmp_path)
        assert cfg.protection_key_path == tmp_path / ".claude" / "protection-key"
        assert cfg.vault_mappings_path == tmp_path / ".claude" / "vault-mappings.json"
        assert cfg.protected_actions_path == (
            tmp_path / ".claude" / "hooks" / "protected-actions.json"
        )

    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CLAUDE_PROJECT_DIR", str(tmp_path))
        monkeypatch.setenv("GENTYR_SECRET_CLI", "/opt/bin/op")
        monkeypatch.setenv("GENTYR_RESOLVE_TIMEOUT", "3")
        monkeypatch.setenv("GENTYR_HEALTH_TIMEOUT", "1.5")
        monkeypatch.setenv("GENTYR_LOG_LEVEL", "debug")
        cfg = get_config()
        assert cfg.project_dir == tmp_path
        assert cfg.secret_cli == "/opt/bin/op"
        assert cfg.resolve_timeout == 3.0
        assert cfg.health_timeout == 1.5
        assert cfg.log_level == "DEBUG"

    def test_singleton(self):
        assert get_config() is get_config()

    def test_reset(self, monkeypatch, tmp_path):
        first = get_config()
        monkeypatch.setenv("CLAUDE_PROJECT_DIR", str(tmp_path))
        assert get_config() is first
        reset_config()
        assert get_config().project_dir == tmp_path

    def test_for_project_keeps_env_settings(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GENTYR_SECRET_CLI", "op2")
        cfg = Config.for_project(str(tmp_path / "other"))
        assert cfg.project_dir == Path(tmp_path / "other")
        assert cfg.secret_cli == "op2"

    def test_frozen(self):
        cfg = Config()
        with pytest.raises(AttributeError):
            cfg.secret_cli = "other"  # type: ignore[misc]
