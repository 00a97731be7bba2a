"""Opaque 32-byte data digests.

The ledger never looks inside a digest; it stores it, returns it and compares
it byte for byte. This module only normalises the accepted input forms and
provides :func:`hash_payload` for callers that commit to JSON payloads.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

DIGEST_SIZE = 32
ZERO_DIGEST = bytes(DIGEST_SIZE)


def normalize_digest(value: bytes | bytearray | memoryview | str) -> bytes:
    """Return ``value`` as exactly 32 raw bytes.

    Accepts raw bytes, or a 64-character hex string with an optional ``0x``
    prefix.

    Raises:
        ValueError: If the value is not a 32-byte digest in one of those forms.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
    elif isinstance(value, str):
        text = value.strip()
        if text[:2].lower() == "0x":
            text = text[2:]
        if len(text) != DIGEST_SIZE * 2:
            raise ValueError(
                f"Digest must be {DIGEST_SIZE * 2} hex characters, got {len(text)}."
            )
        try:
            raw = bytes.fromhex(text)
        except ValueError:
            raise ValueError(f"Digest is not valid hex: {value!r}") from None
    else:
        raise ValueError(f"Unsupported digest type: {type(value).__name__}")

    if len(raw) != DIGEST_SIZE:
        raise ValueError(f"Digest must be {DIGEST_SIZE} bytes, got {len(raw)}.")
    return raw


def to_hex(digest: bytes) -> str:
    """Render a digest as a ``0x``-prefixed lowercase hex string."""
    return "0x" + bytes(digest).hex()


def hash_payload(payload: Any) -> bytes:
    """SHA-256 over the canonical JSON serialisation of ``payload``.

    ``sort_keys=True`` and compact separators make the digest independent of
    dict insertion order and whitespace.
    """
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).digest()
