"""
MCP server launcher: resolve credentials, then run the server in-process.

    gentyr launch <server-name> <server-script> [args...]

1. Reads .claude/vault-mappings.json (op:// references and literal values).
2. Reads .claude/hooks/protected-actions.json for the keys this server needs.
3. Resolves each missing key into os.environ.
4. Runs the server script in this interpreter, so resolved values never
   cross a process boundary as arguments or files.

Missing or unreadable config files are logged; the server still starts and
its own credential checks decide whether it can work.
"""

from __future__ import annotations

import logging
import os
import runpy
import sys
from pathlib import Path
from typing import Any, MutableMapping, Sequence

from gentyr.config import Config, get_config
from gentyr.registry import CredentialKeyRegistry, RegistryError, VaultMapping
from gentyr.vault.resolver import ResolutionReport, VaultResolver

logger = logging.getLogger(__name__)


def resolve_server_credentials(
    server_name: str,
    config: Config | None = None,
    environ: MutableMapping[str, str] | None = None,
    resolver: VaultResolver | None = None,
) -> ResolutionReport:
    """Populate environ with the credentials server_name is registered for."""
    cfg = config or get_config()
    env = os.environ if environ is None else environ

    try:
        mapping = VaultMapping.load(cfg.vault_mappings_path)
    except RegistryError as e:
        logger.error("[%s] No vault mappings: %s", server_name, e)
        mapping = VaultMapping()

    try:
        keys = CredentialKeyRegistry.load(cfg.protected_actions_path).keys_for(server_name)
    except RegistryError as e:
        logger.error("[%s] No protected-actions config: %s", server_name, e)
        keys = ()

    resolver = resolver or VaultResolver(
        mapping, cli=cfg.secret_cli, timeout=cfg.resolve_timeout
    )
    report = resolver.resolve_into(keys, env)
    if keys:
        logger.info("[%s] %s", server_name, report.summary())
    return report


def launch(
    server_name: str,
    script: Path | str,
    args: Sequence[str] = (),
    config: Config | None = None,
    environ: MutableMapping[str, str] | None = None,
) -> dict[str, Any]:
    """Resolve credentials for server_name, then run script as __main__.

    Returns the script's module globals.
    """
    script_path = Path(script).resolve()
    if not script_path.is_file():
        raise FileNotFoundError(f"Server script not found: {script_path}")

    resolve_server_credentials(server_name, config=config, environ=environ)

    # Same argv and sys.path[0] as `python <script>`, so sibling imports work
    saved_argv = sys.argv
    saved_path = list(sys.path)
    sys.argv = [str(script_path), *args]
    sys.path.insert(0, str(script_path.parent))
    try:
        return runpy.run_path(str(script_path), run_name="__main__")
    finally:
        sys.argv = saved_argv
        sys.path[:] = saved_path
