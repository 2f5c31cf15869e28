"""
Project-level access to credential envelopes.

Binds the envelope cipher to the project's protection key. `unseal` is what
the approval workflow calls once a human has approved a protected action;
it raises on any failure and never returns unverified plaintext.
"""

from __future__ import annotations

import logging

from gentyr.config import Config, get_config
from gentyr.vault.crypto import decrypt, encrypt, ensure_key, read_key

logger = logging.getLogger(__name__)


def load_protection_key(config: Config | None = None) -> bytes:
    cfg = config or get_config()
    key = read_key(cfg.protection_key_path)
    if key is None:
        raise FileNotFoundError(
            f"Protection key not found at {cfg.protection_key_path}. "
            "Run 'gentyr encrypt --generate-key' to create one."
        )
    return key


def seal(value: str, config: Config | None = None) -> str:
    """Encrypt value under the project key, generating the key on first use."""
    cfg = config or get_config()
    existed = cfg.protection_key_path.exists()
    key = ensure_key(cfg.protection_key_path)
    if not existed:
        logger.warning("Generated new protection key at %s", cfg.protection_key_path)
    return encrypt(value, key)


def unseal(envelope: str, config: Config | None = None) -> str:
    """Decrypt an envelope with the project key."""
    return decrypt(envelope, load_protection_key(config))
