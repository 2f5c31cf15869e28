"""Atomic file writes for key material and other files read by concurrent hooks."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def atomic_write(path: Path | str, content: str, mode: int = 0o600) -> Path:
    """Write content via a temp file in the same directory, then rename over path.

    Readers in other processes see either the old file or the new one, never
    a partial write. The temp file is created with owner-only permissions
    before any content is written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}-",
        suffix=".tmp",
    )
    try:
        # fdopen owns fd from here and closes it exactly once
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            os.fchmod(f.fileno(), mode)
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except Exception:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    return path
