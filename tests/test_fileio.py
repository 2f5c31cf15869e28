"""Tests for gentyr.fileio: atomic writes."""

import os
import stat
from unittest.mock import patch

import pytest

from gentyr.fileio import atomic_write


class TestAtomicWrite:
    def test_writes_and_creates_parents(self, tmp_path):
        path = atomic_write(tmp_path / "a" / "b" / "file.txt", "hello")
        assert path.read_text() == "hello"

    def test_owner_only_by_default(self, tmp_path):
        path = atomic_write(tmp_path / "key", "k")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_custom_mode(self, tmp_path):
        path = atomic_write(tmp_path / "shared", "x", mode=0o644)
        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    def test_replaces_existing(self, tmp_path):
        target = tmp_path / "file"
        target.write_text("old")
        atomic_write(target, "new")
        assert target.read_text() == "new"

    def test_failure_leaves_original_and_no_temp(self, tmp_path):
        target = tmp_path / "file"
        target.write_text("old")
        with patch("gentyr.fileio.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                atomic_write(target, "new")
        assert target.read_text() == "old"
        assert os.listdir(tmp_path) == ["file"]

    def test_large_content_written_fully(self, tmp_path):
        content = "0123456789abcdef" * (1 << 18)
        path = atomic_write(tmp_path / "big", content)
        assert path.read_text() == content

    def test_failure_before_rename_cleans_up(self, tmp_path):
        target = tmp_path / "file"
        target.write_text("old")
        with patch("gentyr.fileio.os.fsync", side_effect=OSError("io error")):
            with pytest.raises(OSError, match="io error"):
                atomic_write(target, "new")
        assert target.read_text() == "old"
        assert os.listdir(tmp_path) == ["file"]
