"""
Gentyr Vault: credential envelopes and op:// reference resolution.

Public API:
    encrypt(value, key)        → ${GENTYR_ENCRYPTED:...} envelope
    decrypt(envelope, key)     → plaintext, or raises on any tampering
    ensure_key(path)           → protection key, generated on first use
    VaultResolver(mapping)     → resolves credential keys into an environ
"""

from __future__ import annotations

from gentyr.vault.crypto import (
    EnvelopeFormatError,
    EnvelopeIntegrityError,
    decrypt,
    encrypt,
    ensure_key,
    generate_key,
    is_envelope,
    read_key,
    write_key,
)
from gentyr.vault.resolver import ResolutionReport, VaultResolver

__all__ = [
    "EnvelopeFormatError",
    "EnvelopeIntegrityError",
    "ResolutionReport",
    "VaultResolver",
    "decrypt",
    "encrypt",
    "ensure_key",
    "generate_key",
    "is_envelope",
    "read_key",
    "write_key",
]
