"""
PreToolUse interception hook: hard-blocks credential access by tool calls.

Reads one JSON event on stdin:
    {"tool_name": "Bash", "tool_input": {"command": "..."}, "cwd": "/project"}

On deny, writes the host's permission JSON on stdout:
    {"hookSpecificOutput": {"hookEventName": "PreToolUse",
                            "permissionDecision": "deny",
                            "permissionDecisionReason": "..."}}

On allow, writes nothing so the host's normal permission flow applies.
Any error while reading the event is a deny (fail-closed).
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Mapping, TextIO

from pydantic import BaseModel

from gentyr.config import Config
from gentyr.guard.scanner import CommandScanner, ScanResult
from gentyr.registry import CredentialKeyRegistry, RegistryError

logger = logging.getLogger(__name__)

HOOK_EVENT_NAME = "PreToolUse"

FILE_PATH_TOOLS = frozenset({"Read", "Write", "Edit"})
COMMAND_TOOLS = frozenset({"Bash"})

MAX_COMMAND_DISPLAY = 100


class HookInput(BaseModel):
    """The subset of the PreToolUse event this hook reads."""

    tool_name: str
    tool_input: dict[str, Any] | None = None
    cwd: str | None = None

    def project_dir(self, environ: Mapping[str, str] | None = None) -> str:
        env = os.environ if environ is None else environ
        return self.cwd or env.get("CLAUDE_PROJECT_DIR") or os.getcwd()


def deny_output(reason: str) -> dict:
    return {
        "hookSpecificOutput": {
            "hookEventName": HOOK_EVENT_NAME,
            "permissionDecision": "deny",
            "permissionDecisionReason": reason,
        }
    }


def _truncate(command: str) -> str:
    if len(command) > MAX_COMMAND_DISPLAY:
        return command[:MAX_COMMAND_DISPLAY] + "..."
    return command


def format_file_denial(path: str, reason: str) -> str:
    return "\n".join(
        [
            "BLOCKED: Credential File Access",
            "",
            f"Why: {reason}",
            "",
            f"Path: {path}",
            "",
            "This file is protected to prevent credential exposure.",
            "If you need access to this file, request CTO approval.",
        ]
    )


def format_command_denial(command: str, reason: str) -> str:
    return "\n".join(
        [
            "BLOCKED: Credential Access via Bash",
            "",
            f"Why: {reason}",
            "",
            f"Command: {_truncate(command)}",
            "",
            "Credentials should only be accessed through approved MCP server tools.",
            "If you need access, request CTO approval.",
        ]
    )


def load_scanner(project_dir: str) -> CommandScanner:
    """Build a scanner from the project's registry, re-read on every call."""
    cfg = Config.for_project(project_dir)
    try:
        keys = CredentialKeyRegistry.load(cfg.protected_actions_path)
    except RegistryError as e:
        # File checks and env-dump checks still run; only $VAR names are unknown
        logger.warning("Could not load credential keys: %s", e)
        keys = CredentialKeyRegistry()
    return CommandScanner.from_registry(keys)


def evaluate(event: HookInput, environ: Mapping[str, str] | None = None) -> tuple[ScanResult, str]:
    """Scan one tool call. Returns (result, full denial text or "")."""
    tool_input = event.tool_input or {}
    project_dir = event.project_dir(environ)

    if event.tool_name in COMMAND_TOOLS:
        command = str(tool_input.get("command") or "")
        if not command:
            return ScanResult(), ""
        result = load_scanner(project_dir).scan_command(command, cwd=project_dir)
        if result.allowed:
            return result, ""
        return result, format_command_denial(command, result.reason)

    if event.tool_name in FILE_PATH_TOOLS:
        path = str(tool_input.get("file_path") or "")
        if not path:
            return ScanResult(), ""
        result = load_scanner(project_dir).scan_file(path, cwd=project_dir)
        if result.allowed:
            return result, ""
        return result, format_file_denial(path, result.reason)

    return ScanResult(), ""


def handle(raw: str, environ: Mapping[str, str] | None = None) -> dict | None:
    """Decide one raw event. Returns the deny payload, or None to allow."""
    try:
        event = HookInput.model_validate_json(raw)
        result, message = evaluate(event, environ)
    except Exception as e:
        logger.error("FAIL-CLOSED: error handling hook input: %s", e)
        return deny_output(f"FAIL-CLOSED: Hook error - {type(e).__name__}: {_first_line(e)}")

    if result.allowed:
        return None
    logger.info("Denied %s (%s)", event.tool_name, result.rule)
    return deny_output(message)


def _first_line(err: Exception) -> str:
    text = str(err).strip()
    return text.splitlines()[0] if text else "unknown error"


def _banner(message: str, stream: TextIO) -> None:
    rule = "=" * 62
    stream.write(f"\n{rule}\n")
    for line in message.splitlines():
        stream.write(f"  {line}\n")
    stream.write(f"{rule}\n\n")


def run(
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    """Hook entry point. Always exits 0; the JSON payload carries the deny."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    try:
        raw = stdin.read()
    except Exception as e:
        logger.error("FAIL-CLOSED: cannot read hook input: %s", e)
        raw = ""

    payload = handle(raw)
    if payload is not None:
        stdout.write(json.dumps(payload) + "\n")
        stdout.flush()
        _banner(payload["hookSpecificOutput"]["permissionDecisionReason"], stderr)
    return 0
