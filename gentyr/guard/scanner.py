"""
Command Scanner: decides whether a file operation or shell command exposes
protected credential material.

Shell commands are checked three ways:
  1. File-reading/copying commands and `<` redirections whose path argument
     resolves to a protected file.
  2. Full environment dumps (env, printenv, export -p).
  3. Direct references to registered credential variables ($KEY, ${KEY},
     printenv KEY).

Every check is a pure function of (command, cwd, registries). Any hit is a
hard deny; there is no warn-only outcome.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field

from gentyr.guard.tokenizer import is_redirect, split_on_operators, tokenize
from gentyr.registry import CredentialKeyRegistry, ProtectedResourceRegistry

# Commands that print or stream file contents
FILE_READ_COMMANDS = frozenset(
    {
        "cat",
        "head",
        "tail",
        "less",
        "more",
        "strings",
        "xxd",
        "hexdump",
        "base64",
        "open",
        "source",
        "bat",
        "nl",
    }
)

# Commands whose source argument is a file path
FILE_COPY_COMMANDS = frozenset({"cp", "mv"})

# Command boundaries instead of \b, so ".env" is not "env"
ENV_DUMP_PATTERN = re.compile(r"(?:^|[\s;&|])(env|printenv|export\s+-p)(?:\s|$|[;&|])")

RULE_PROTECTED_FILE = "protected_file"
RULE_ENV_DUMP = "env_dump"
RULE_CREDENTIAL_VARIABLE = "credential_variable"


@dataclass
class ScanResult:
    """Outcome of a scan. `reason` never contains a secret value."""

    allowed: bool = True
    reason: str = ""
    rule: str = ""
    target: str = ""

    @property
    def decision(self) -> str:
        return "allow" if self.allowed else "deny"

    @classmethod
    def deny(cls, reason: str, rule: str, target: str = "") -> ScanResult:
        return cls(allowed=False, reason=reason, rule=rule, target=target)


def _is_flag(token: str) -> bool:
    return token.startswith("-") and not token.startswith(("./", "../"))


def extract_file_paths(command: str) -> list[str]:
    """Candidate file paths a command may read.

    Flags are skipped but flag values are not; checking a harmless extra
    token is cheaper than missing a real path.
    """
    paths: list[str] = []

    for tokens in split_on_operators(tokenize(command)):
        if not tokens:
            continue

        name = os.path.basename(tokens[0])
        if name in FILE_READ_COMMANDS or name in FILE_COPY_COMMANDS:
            i = 1
            while i < len(tokens):
                token = tokens[i]
                if is_redirect(token):
                    # Output targets are writes; `<` targets are collected below
                    i += 2
                    continue
                if token and not _is_flag(token) and not token.startswith("$"):
                    paths.append(token)
                i += 1

        for i, token in enumerate(tokens[:-1]):
            if is_redirect(token, "<"):
                paths.append(tokens[i + 1])

    return paths


def check_env_access(command: str, credential_keys: tuple[str, ...] | list[str]) -> ScanResult:
    """Check the raw command for env dumps and credential variable references."""
    if ENV_DUMP_PATTERN.search(command):
        return ScanResult.deny(
            "Environment dump commands are blocked to prevent credential exposure",
            RULE_ENV_DUMP,
        )

    for key in credential_keys:
        escaped = re.escape(key)
        if re.search(r"\$\{?" + escaped + r"\}?\b", command):
            return ScanResult.deny(
                f"Command references protected credential variable: {key}",
                RULE_CREDENTIAL_VARIABLE,
                key,
            )
        if re.search(r"\bprintenv\s+" + escaped + r"\b", command):
            return ScanResult.deny(
                f"Command reads protected credential variable: {key}",
                RULE_CREDENTIAL_VARIABLE,
                key,
            )

    return ScanResult()


@dataclass(frozen=True)
class CommandScanner:
    """Allow/deny decisions for file paths and shell commands."""

    resources: ProtectedResourceRegistry = field(default_factory=ProtectedResourceRegistry)
    credential_keys: tuple[str, ...] = ()

    @classmethod
    def from_registry(
        cls,
        keys: CredentialKeyRegistry,
        resources: ProtectedResourceRegistry | None = None,
    ) -> CommandScanner:
        return cls(
            resources=resources or ProtectedResourceRegistry(),
            credential_keys=keys.all_keys(),
        )

    def scan_file(self, path: str, cwd: str | None = None) -> ScanResult:
        reason = self.resources.match(path, cwd)
        if reason:
            return ScanResult.deny(reason, RULE_PROTECTED_FILE, path)
        return ScanResult()

    def scan_command(self, command: str, cwd: str | None = None) -> ScanResult:
        if not command:
            return ScanResult()

        for path in extract_file_paths(command):
            result = self.scan_file(path, cwd)
            if not result.allowed:
                return result

        return check_env_access(command, self.credential_keys)
