"""
AES-256-GCM envelopes for credentials stored at rest in config files.

The protection key is 32 random bytes, base64 on a single line, stored at
<project>/.claude/protection-key (chmod 600). Envelopes may be committed;
the key file must not be.

Envelope format (stable; changing nonce or tag sizes breaks old envelopes):

    ${GENTYR_ENCRYPTED:<nonce-b64>:<tag-b64>:<ciphertext-b64>}
"""

from __future__ import annotations

import base64
import binascii
import secrets
from pathlib import Path

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from gentyr.fileio import atomic_write

KEY_LENGTH = 32  # AES-256
NONCE_LENGTH = 16
TAG_LENGTH = 16

ENVELOPE_PREFIX = "${GENTYR_ENCRYPTED:"
ENVELOPE_SUFFIX = "}"


class EnvelopeFormatError(ValueError):
    """The string is not a well-formed envelope."""


class EnvelopeIntegrityError(ValueError):
    """Authentication failed: wrong key, or tampered/truncated envelope."""


# ─── Key material ────────────────────────────────────────────────────────


def generate_key() -> str:
    """Return a fresh 32-byte key as base64."""
    return base64.b64encode(secrets.token_bytes(KEY_LENGTH)).decode("ascii")


def write_key(key_path: Path | str, key_b64: str) -> Path:
    """Atomically write a base64 key with owner-only permissions."""
    return atomic_write(key_path, key_b64 + "\n", mode=0o600)


def read_key(key_path: Path | str) -> bytes | None:
    """Load the key from disk. Returns None if the file does not exist."""
    try:
        raw = Path(key_path).read_text(encoding="ascii").strip()
    except FileNotFoundError:
        return None
    try:
        key = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Protection key at {key_path} is not valid base64") from e
    if len(key) != KEY_LENGTH:
        raise ValueError(f"Protection key must be {KEY_LENGTH} bytes, got {len(key)}")
    return key


def ensure_key(key_path: Path | str) -> bytes:
    """Read the key, generating it on first use. Never replaces an existing key."""
    key = read_key(key_path)
    if key is not None:
        return key
    key_b64 = generate_key()
    write_key(key_path, key_b64)
    return base64.b64decode(key_b64)


# ─── Envelopes ───────────────────────────────────────────────────────────


def is_envelope(value: str) -> bool:
    return value.startswith(ENVELOPE_PREFIX) and value.endswith(ENVELOPE_SUFFIX)


def _check_key(key: bytes) -> None:
    if len(key) != KEY_LENGTH:
        raise ValueError(f"Protection key must be {KEY_LENGTH} bytes, got {len(key)}")


def encrypt(value: str, key: bytes) -> str:
    """Encrypt value under key with a fresh random nonce."""
    _check_key(key)
    nonce = secrets.token_bytes(NONCE_LENGTH)
    sealed = AESGCM(key).encrypt(nonce, value.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    fields = (base64.b64encode(part).decode("ascii") for part in (nonce, tag, ciphertext))
    return ENVELOPE_PREFIX + ":".join(fields) + ENVELOPE_SUFFIX


def _b64field(value: str, name: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EnvelopeFormatError(f"Envelope {name} is not valid base64") from e


def parse_envelope(envelope: str) -> tuple[bytes, bytes, bytes]:
    """Split an envelope into (nonce, tag, ciphertext)."""
    if not is_envelope(envelope):
        raise EnvelopeFormatError("Invalid encrypted value format: missing envelope markers")

    payload = envelope[len(ENVELOPE_PREFIX) : -len(ENVELOPE_SUFFIX)]
    parts = payload.split(":")
    if len(parts) != 3:
        raise EnvelopeFormatError(
            f"Invalid encrypted payload format: expected 3 fields, got {len(parts)}"
        )

    nonce = _b64field(parts[0], "nonce")
    tag = _b64field(parts[1], "tag")
    ciphertext = _b64field(parts[2], "ciphertext")
    if len(nonce) != NONCE_LENGTH:
        raise EnvelopeFormatError(f"Envelope nonce must be {NONCE_LENGTH} bytes, got {len(nonce)}")
    if len(tag) != TAG_LENGTH:
        raise EnvelopeFormatError(f"Envelope tag must be {TAG_LENGTH} bytes, got {len(tag)}")
    return nonce, tag, ciphertext


def decrypt(envelope: str, key: bytes) -> str:
    """Verify and decrypt an envelope. Raises rather than return unverified data."""
    _check_key(key)
    nonce, tag, ciphertext = parse_envelope(envelope)
    try:
        plaintext = AESGCM(key).decrypt(nonce, ciphertext + tag, None)
    except InvalidTag as e:
        raise EnvelopeIntegrityError(
            "Decryption failed: authentication tag mismatch (wrong key or tampered value)"
        ) from e
    return plaintext.decode("utf-8")
