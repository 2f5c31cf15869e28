"""
Root-level shared test fixtures.

Inherited by the guard, vault and gateway suites and by tests/.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from gentyr.config import reset_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove env vars that leak between tests and reset the config singleton."""
    for key in [
        "CLAUDE_PROJECT_DIR",
        "CLAUDE_SPAWNED_SESSION",
        "GENTYR_SECRET_CLI",
        "GENTYR_RESOLVE_TIMEOUT",
        "GENTYR_HEALTH_TIMEOUT",
        "GENTYR_LOG_LEVEL",
    ]:
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """An empty project with a .claude/hooks directory."""
    project = tmp_path / "project"
    (project / ".claude" / "hooks").mkdir(parents=True)
    return project


@pytest.fixture
def write_protected_actions(project_dir: Path):
    """Write .claude/hooks/protected-actions.json from a {server: [keys]} dict."""

    def _write(servers: dict[str, list[str]]) -> Path:
        path = project_dir / ".claude" / "hooks" / "protected-actions.json"
        body = {
            "version": "1.0.0",
            "servers": {
                name: {"protection": "credential-isolated", "credentialKeys": keys}
                for name, keys in servers.items()
            },
        }
        path.write_text(json.dumps(body))
        return path

    return _write


@pytest.fixture
def write_vault_mappings(project_dir: Path):
    """Write .claude/vault-mappings.json from a {key: ref} dict."""

    def _write(mappings: dict[str, str]) -> Path:
        path = project_dir / ".claude" / "vault-mappings.json"
        path.write_text(json.dumps({"provider": "1password", "mappings": mappings}))
        return path

    return _write
