"""
Vault Resolver: turns op:// references into process environment values.

Credentials only exist in process memory; nothing resolved here is written to
disk or passed on a command line. Resolution degrades per key: a reference
that cannot be resolved leaves that one variable unset and is logged, and the
wrapped server's own credential checks decide what happens next.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from typing import Callable, Iterable, MutableMapping

from gentyr.registry import VaultMapping, is_reference

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


@dataclass
class ResolutionReport:
    """Key names per outcome. Never holds values."""

    resolved: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    unmapped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.resolved) + len(self.skipped) + len(self.unmapped) + len(self.failed)

    def summary(self) -> str:
        return (
            f"Resolved {len(self.resolved)}/{self.total} credentials "
            f"({len(self.skipped)} from env)"
        )


class VaultResolver:
    """Resolve credential keys through a VaultMapping and the `op` CLI."""

    def __init__(
        self,
        mapping: VaultMapping,
        cli: str = "op",
        timeout: float = DEFAULT_TIMEOUT,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self.mapping = mapping
        self.cli = cli
        self.timeout = timeout
        self._run = runner
        # reference -> value, None for a reference that failed
        self._cache: dict[str, str | None] = {}
        self.invocations = 0

    def resolve_reference(self, ref: str) -> str | None:
        """Read one reference via `<cli> read <ref>`. Cached per process, failures too."""
        if ref in self._cache:
            return self._cache[ref]

        self.invocations += 1
        value: str | None = None
        try:
            result = self._run(
                [self.cli, "read", ref],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
            value = (result.stdout or "").strip() or None
            if value is None:
                logger.warning("Empty value returned for %s", ref)
        except subprocess.TimeoutExpired:
            logger.warning("Timed out after %.0fs resolving %s", self.timeout, ref)
        except subprocess.CalledProcessError as e:
            logger.warning("%s read failed for %s (exit %s)", self.cli, ref, e.returncode)
        except OSError as e:
            logger.warning("Cannot run %s to resolve %s: %s", self.cli, ref, e.strerror or e)

        self._cache[ref] = value
        return value

    def resolve_into(
        self,
        keys: Iterable[str],
        environ: MutableMapping[str, str],
    ) -> ResolutionReport:
        """Populate environ for each key. Already-set variables win."""
        report = ResolutionReport()

        for key in keys:
            if environ.get(key):
                report.skipped.append(key)
                continue

            ref = self.mapping.get(key)
            if not ref:
                report.unmapped.append(key)
                continue

            if not is_reference(ref):
                # Literal, non-secret identifier (URL, zone ID, ...)
                environ[key] = ref
                report.resolved.append(key)
                continue

            value = self.resolve_reference(ref)
            if value is None:
                logger.warning("Failed to resolve %s", key)
                report.failed.append(key)
                continue
            environ[key] = value
            report.resolved.append(key)

        return report
