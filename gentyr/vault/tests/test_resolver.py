"""Tests for op:// credential resolution."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock

from gentyr.registry import VaultMapping
from gentyr.vault.resolver import VaultResolver


def fake_op(values: dict[str, str], fail: set[str] = frozenset(), hang: set[str] = frozenset()):
    """A subprocess.run stand-in for `op read <ref>`."""

    def _run(cmd, **kwargs):
        assert cmd[1] == "read"
        ref = cmd[2]
        if ref in hang:
            raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))
        if ref in fail:
            raise subprocess.CalledProcessError(1, cmd, stderr="[ERROR] item not found")
        return subprocess.CompletedProcess(cmd, 0, stdout=values[ref] + "\n", stderr="")

    return MagicMock(side_effect=_run)


class TestResolveReference:
    def test_reads_and_strips(self):
        runner = fake_op({"op://Prod/GitHub/token": "ghp_x"})
        resolver = VaultResolver(VaultMapping(), runner=runner)
        assert resolver.resolve_reference("op://Prod/GitHub/token") == "ghp_x"
        cmd = runner.call_args.args[0]
        assert cmd == ["op", "read", "op://Prod/GitHub/token"]
        assert runner.call_args.kwargs["timeout"] == 15.0

    def test_custom_cli_and_timeout(self):
        runner = fake_op({"op://a": "1"})
        resolver = VaultResolver(VaultMapping(), cli="/opt/op", timeout=2.5, runner=runner)
        resolver.resolve_reference("op://a")
        assert runner.call_args.args[0][0] == "/opt/op"
        assert runner.call_args.kwargs["timeout"] == 2.5

    def test_cached(self):
        runner = fake_op({"op://a": "1"})
        resolver = VaultResolver(VaultMapping(), runner=runner)
        resolver.resolve_reference("op://a")
        resolver.resolve_reference("op://a")
        assert runner.call_count == 1
        assert resolver.invocations == 1

    def test_failure_cached(self):
        runner = fake_op({}, fail={"op://bad"})
        resolver = VaultResolver(VaultMapping(), runner=runner)
        assert resolver.resolve_reference("op://bad") is None
        assert resolver.resolve_reference("op://bad") is None
        assert runner.call_count == 1

    def test_timeout_is_unresolved(self):
        resolver = VaultResolver(VaultMapping(), runner=fake_op({}, hang={"op://slow"}))
        assert resolver.resolve_reference("op://slow") is None

    def test_missing_cli_is_unresolved(self):
        runner = MagicMock(side_effect=FileNotFoundError(2, "No such file", "op"))
        resolver = VaultResolver(VaultMapping(), runner=runner)
        assert resolver.resolve_reference("op://a") is None

    def test_empty_output_is_unresolved(self):
        resolver = VaultResolver(VaultMapping(), runner=fake_op({"op://a": "   "}))
        assert resolver.resolve_reference("op://a") is None


class TestResolveInto:
    def test_shared_reference_resolves_once(self):
        mapping = VaultMapping(
            mappings={
                "SUPABASE_KEY": "op://Prod/Supabase/service-role",
                "SUPABASE_SERVICE_ROLE_KEY": "op://Prod/Supabase/service-role",
            }
        )
        runner = fake_op({"op://Prod/Supabase/service-role": "eyJ-secret"})
        resolver = VaultResolver(mapping, runner=runner)
        env: dict[str, str] = {}
        report = resolver.resolve_into(["SUPABASE_KEY", "SUPABASE_SERVICE_ROLE_KEY"], env)
        assert env["SUPABASE_KEY"] == env["SUPABASE_SERVICE_ROLE_KEY"] == "eyJ-secret"
        assert runner.call_count == 1
        assert report.resolved == ["SUPABASE_KEY", "SUPABASE_SERVICE_ROLE_KEY"]

    def test_partial_degradation(self):
        mapping = VaultMapping(
            mappings={"A": "op://v/a/x", "B": "op://v/b/x", "C": "op://v/c/x"}
        )
        runner = fake_op({"op://v/a/x": "1", "op://v/c/x": "3"}, fail={"op://v/b/x"})
        env: dict[str, str] = {}
        report = VaultResolver(mapping, runner=runner).resolve_into(["A", "B", "C"], env)
        assert env == {"A": "1", "C": "3"}
        assert report.failed == ["B"]
        assert report.resolved == ["A", "C"]

    def test_timeout_does_not_block_other_keys(self):
        mapping = VaultMapping(mappings={"SLOW": "op://v/slow", "FAST": "op://v/fast"})
        runner = fake_op({"op://v/fast": "ok"}, hang={"op://v/slow"})
        env: dict[str, str] = {}
        report = VaultResolver(mapping, runner=runner).resolve_into(["SLOW", "FAST"], env)
        assert env == {"FAST": "ok"}
        assert report.failed == ["SLOW"]

    def test_existing_env_wins(self):
        mapping = VaultMapping(mappings={"TOKEN": "op://v/t"})
        runner = fake_op({"op://v/t": "from-vault"})
        env = {"TOKEN": "from-ci"}
        report = VaultResolver(mapping, runner=runner).resolve_into(["TOKEN"], env)
        assert env["TOKEN"] == "from-ci"
        assert report.skipped == ["TOKEN"]
        runner.assert_not_called()

    def test_empty_env_value_is_not_set(self):
        mapping = VaultMapping(mappings={"TOKEN": "op://v/t"})
        env = {"TOKEN": ""}
        VaultResolver(mapping, runner=fake_op({"op://v/t": "v"})).resolve_into(["TOKEN"], env)
        assert env["TOKEN"] == "v"

    def test_literal_value_no_cli(self):
        mapping = VaultMapping(mappings={"CLOUDFLARE_ZONE_ID": "abc123"})
        runner = fake_op({})
        env: dict[str, str] = {}
        report = VaultResolver(mapping, runner=runner).resolve_into(["CLOUDFLARE_ZONE_ID"], env)
        assert env == {"CLOUDFLARE_ZONE_ID": "abc123"}
        assert report.resolved == ["CLOUDFLARE_ZONE_ID"]
        runner.assert_not_called()

    def test_unmapped_left_unset(self):
        env: dict[str, str] = {}
        report = VaultResolver(VaultMapping(), runner=fake_op({})).resolve_into(["MISSING"], env)
        assert env == {}
        assert report.unmapped == ["MISSING"]

    def test_summary(self):
        mapping = VaultMapping(mappings={"A": "lit", "B": "op://v/b"})
        env = {"C": "set"}
        report = VaultResolver(mapping, runner=fake_op({}, fail={"op://v/b"})).resolve_into(
            ["A", "B", "C"], env
        )
        assert report.summary() == "Resolved 1/3 credentials (1 from env)"
