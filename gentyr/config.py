"""
Centralized configuration for Gentyr.

All configuration is loaded from environment variables with sensible defaults.
File locations are derived from the project directory, so one hook binary
serves every project on the host.

Usage:
    from gentyr.config import get_config
    cfg = get_config()
    print(cfg.project_dir)            # $CLAUDE_PROJECT_DIR or cwd
    print(cfg.protection_key_path)    # <project>/.claude/protection-key
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

CLAUDE_DIR_NAME = ".claude"


@dataclass(frozen=True)
class Config:
    """Top-level Gentyr configuration."""

    project_dir: Path = field(default_factory=Path.cwd)

    # External secret CLI (1Password)
    secret_cli: str = "op"
    resolve_timeout: float = 15.0
    health_timeout: float = 5.0

    log_level: str = "WARNING"

    @property
    def claude_dir(self) -> Path:
        return self.project_dir / CLAUDE_DIR_NAME

    @property
    def protection_key_path(self) -> Path:
        return self.claude_dir / "protection-key"

    @property
    def vault_mappings_path(self) -> Path:
        return self.claude_dir / "vault-mappings.json"

    @property
    def protected_actions_path(self) -> Path:
        return self.claude_dir / "hooks" / "protected-actions.json"

    @classmethod
    def for_project(cls, project_dir: Path | str) -> Config:
        """Environment-derived config pinned to an explicit project directory."""
        base = _load_from_env()
        return cls(
            project_dir=Path(project_dir),
            secret_cli=base.secret_cli,
            resolve_timeout=base.resolve_timeout,
            health_timeout=base.health_timeout,
            log_level=base.log_level,
        )


# Singleton
_config: Config | None = None


def get_config() -> Config:
    """Get or create the singleton config from environment variables."""
    global _config
    if _config is not None:
        return _config
    _config = _load_from_env()
    return _config


def _load_from_env() -> Config:
    """Load configuration from environment variables."""
    project_dir = Path(os.environ.get("CLAUDE_PROJECT_DIR") or Path.cwd())

    return Config(
        project_dir=project_dir,
        secret_cli=os.environ.get("GENTYR_SECRET_CLI", "op"),
        resolve_timeout=float(os.environ.get("GENTYR_RESOLVE_TIMEOUT", "15")),
        health_timeout=float(os.environ.get("GENTYR_HEALTH_TIMEOUT", "5")),
        log_level=os.environ.get("GENTYR_LOG_LEVEL", "WARNING").upper(),
    )


def reset_config() -> None:
    """Reset the singleton config (for testing)."""
    global _config
    _config = None
