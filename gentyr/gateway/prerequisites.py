"""Check that the 1Password CLI is installed and signed in."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass


@dataclass
class PrereqResult:
    name: str
    found: bool
    version: str
    hint: str

    @property
    def ok(self) -> bool:
        return self.found


def check_secret_cli(cli: str = "op") -> PrereqResult:
    """Check that the secret CLI is on PATH and reports a version."""
    path = shutil.which(cli)
    if not path:
        return PrereqResult(
            name=cli,
            found=False,
            version="",
            hint="Install the 1Password CLI: https://developer.1password.com/docs/cli",
        )

    try:
        result = subprocess.run(
            [path, "--version"], capture_output=True, text=True, timeout=5
        )
        return PrereqResult(
            name=cli,
            found=result.returncode == 0,
            version=result.stdout.strip(),
            hint="" if result.returncode == 0 else f"{cli} --version exited {result.returncode}",
        )
    except (OSError, subprocess.SubprocessError):
        return PrereqResult(
            name=cli,
            found=False,
            version="",
            hint=f"Failed to detect {cli} version",
        )


def check_cli_authenticated(cli: str = "op", timeout: float = 5.0) -> bool:
    """True if `<cli> whoami` succeeds within timeout."""
    path = shutil.which(cli)
    if not path:
        return False
    try:
        result = subprocess.run(
            [path, "whoami", "--format", "json"],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.SubprocessError):
        return False
    return result.returncode == 0
