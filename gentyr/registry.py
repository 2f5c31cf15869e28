"""
Registries consulted by the guard and the launcher.

- ProtectedResourceRegistry: file names, path suffixes and path patterns that
  are never readable by an agent. Static, compiled in.
- CredentialKeyRegistry: server name -> credential env var names, loaded from
  .claude/hooks/protected-actions.json.
- VaultMapping: credential env var name -> op:// reference or literal value,
  loaded from .claude/vault-mappings.json. Read-only here.

Files are re-read on every call to load(); nothing is cached across processes.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

OP_REFERENCE_PREFIX = "op://"


class RegistryError(ValueError):
    """A registry file exists but cannot be parsed."""


# ─── Protected resources ─────────────────────────────────────────────────

DEFAULT_BLOCKED_BASENAMES = frozenset(
    {
        ".env",
        ".env.local",
        ".env.production",
        ".env.staging",
        ".env.development",
        ".env.test",
        ".credentials.json",
    }
)

DEFAULT_BLOCKED_PATH_SUFFIXES = (
    ".claude/protection-key",
    ".claude/api-key-rotation.json",
    ".claude/bypass-approval-token.json",
    ".claude/commit-approval-token.json",
    ".claude/credential-provider.json",
    ".mcp.json",
)

DEFAULT_BLOCKED_PATH_PATTERNS = (
    re.compile(r"\.env(\.[a-z]+)?$", re.IGNORECASE),
)


def resolve_candidates(path: str, cwd: Path | str | None = None) -> list[str]:
    """Absolute forms of path: lexically normalized, then symlink-resolved.

    Both are returned (deduplicated) so that neither `..` segments nor a
    symlinked directory can hide a protected file.
    """
    base = str(cwd) if cwd else os.getcwd()
    expanded = os.path.expanduser(path)
    absolute = os.path.normpath(os.path.join(base, expanded))
    real = os.path.realpath(absolute)
    return [absolute] if real == absolute else [absolute, real]


@dataclass(frozen=True)
class ProtectedResourceRegistry:
    """Files that hold credentials or credential-bearing configuration."""

    basenames: frozenset[str] = DEFAULT_BLOCKED_BASENAMES
    path_suffixes: tuple[str, ...] = DEFAULT_BLOCKED_PATH_SUFFIXES
    path_patterns: tuple[re.Pattern[str], ...] = DEFAULT_BLOCKED_PATH_PATTERNS

    def match(self, path: str, cwd: Path | str | None = None) -> str | None:
        """Return a reason if path resolves to a protected file, else None."""
        if not path:
            return None

        for candidate in resolve_candidates(path, cwd):
            basename = os.path.basename(candidate)
            if basename in self.basenames:
                return f'File "{basename}" contains credentials or secrets'

            normalized = candidate.replace("\\", "/")
            for suffix in self.path_suffixes:
                if normalized.endswith(suffix):
                    return f'File "{suffix}" contains sensitive configuration'

            for pattern in self.path_patterns:
                if pattern.search(candidate):
                    return f"File matches protected credential pattern: {basename}"
        return None


# ─── File schemas ────────────────────────────────────────────────────────


class _ServerEntry(BaseModel):
    credentialKeys: list[str] = []


class _ProtectedActionsFile(BaseModel):
    servers: dict[str, _ServerEntry] = {}


class _VaultMappingsFile(BaseModel):
    mappings: dict[str, str | None] = {}


def _read_model(path: Path, model: type[BaseModel]) -> BaseModel | None:
    """Whole-file read + validation. None when the file does not exist."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        raise RegistryError(f"Cannot read {path.name}: {e.strerror or e}") from e
    try:
        return model.model_validate_json(text)
    except ValidationError as e:
        raise RegistryError(
            f"Invalid {path.name}: {e.error_count()} validation error(s)"
        ) from e


# ─── Credential keys ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class CredentialKeyRegistry:
    """Which credential env vars each protected server needs."""

    servers: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen = {name: tuple(keys) for name, keys in self.servers.items()}
        object.__setattr__(self, "servers", MappingProxyType(frozen))

    @classmethod
    def load(cls, path: Path | str) -> CredentialKeyRegistry:
        """Load from protected-actions.json. A missing file is an empty registry."""
        data = _read_model(Path(path), _ProtectedActionsFile)
        if data is None:
            logger.debug("No protected-actions config at %s", path)
            return cls()
        return cls(
            servers={name: tuple(entry.credentialKeys) for name, entry in data.servers.items()}
        )

    def keys_for(self, server: str) -> tuple[str, ...]:
        return self.servers.get(server, ())

    def all_keys(self) -> tuple[str, ...]:
        """Every registered key, in first-seen order, without duplicates."""
        seen: dict[str, None] = {}
        for keys in self.servers.values():
            for key in keys:
                seen.setdefault(key, None)
        return tuple(seen)


# ─── Vault mappings ──────────────────────────────────────────────────────


def is_reference(value: str) -> bool:
    """True for an indirect vault reference, False for a literal value."""
    return value.startswith(OP_REFERENCE_PREFIX)


@dataclass(frozen=True)
class VaultMapping:
    """Credential env var name -> op:// reference or literal (non-secret) value."""

    mappings: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        cleaned = {key: value for key, value in self.mappings.items() if value}
        object.__setattr__(self, "mappings", MappingProxyType(cleaned))

    @classmethod
    def load(cls, path: Path | str) -> VaultMapping:
        """Load from vault-mappings.json. A missing file is an empty mapping."""
        data = _read_model(Path(path), _VaultMappingsFile)
        if data is None:
            logger.info("No vault mappings at %s", path)
            return cls()
        return cls(mappings={k: v for k, v in data.mappings.items() if v})

    def get(self, key: str) -> str | None:
        return self.mappings.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.mappings
