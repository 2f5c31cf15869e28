"""
Credential health check: run at session start.

Compares the credential keys every protected server needs against the vault
mappings, and when op:// references are in play, checks that the 1Password
CLI is installed and signed in. Produces a one-line operator message or
nothing. Never raises: a broken check must not block a session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from gentyr.config import Config
from gentyr.gateway.prerequisites import PrereqResult, check_cli_authenticated, check_secret_cli
from gentyr.registry import CredentialKeyRegistry, RegistryError, VaultMapping, is_reference

logger = logging.getLogger(__name__)


@dataclass
class HealthReport:
    required: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    has_references: bool = False
    cli_found: bool | None = None  # None = not probed
    authenticated: bool | None = None
    message: str = ""

    @property
    def healthy(self) -> bool:
        return not self.message


def check_credential_health(
    config: Config,
    auth_probe: Callable[[str, float], bool] = check_cli_authenticated,
    cli_probe: Callable[[str], PrereqResult] = check_secret_cli,
) -> HealthReport:
    report = HealthReport()

    try:
        keys = CredentialKeyRegistry.load(config.protected_actions_path)
    except RegistryError as e:
        logger.warning("Skipping credential health check: %s", e)
        return report

    report.required = list(keys.all_keys())
    if not report.required:
        return report

    try:
        mapping = VaultMapping.load(config.vault_mappings_path)
    except RegistryError as e:
        logger.warning("Vault mappings unreadable: %s", e)
        mapping = VaultMapping()

    for key in report.required:
        ref = mapping.get(key)
        if not ref:
            report.missing.append(key)
        elif is_reference(ref):
            report.has_references = True

    if report.missing:
        report.message = (
            f"GENTYR: {len(report.missing)} credential mapping(s) not configured. "
            "Run /setup-gentyr to complete setup."
        )
        return report

    if report.has_references:
        cli = cli_probe(config.secret_cli)
        report.cli_found = cli.ok
        if not cli.ok:
            report.message = (
                f"GENTYR: 1Password CLI ({config.secret_cli}) is not available ({cli.hint}). "
                "MCP servers will start without credentials."
            )
            return report

        report.authenticated = auth_probe(config.secret_cli, config.health_timeout)
        if not report.authenticated:
            report.message = (
                "GENTYR: 1Password is not authenticated. Run `op signin` or set "
                "OP_SERVICE_ACCOUNT_TOKEN. MCP servers will start without credentials."
            )

    return report
