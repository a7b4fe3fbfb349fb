"""
Deterministic content hashing for blob deduplication.

Oversized bind values are stored once in the ``BLOBS`` table and shared by
every row that binds the same payload. The lookup key is the SHA-256 digest
of the exact bytes, so two writes of the same content always resolve to the
same blob id.

Manifesto:
    - **Deterministic:** Same bytes always produce the same digest
    - **Exact:** Hashes the bytes that are stored, never a normalised form
    - **Full width:** 64 hex chars; a truncated digest would let two
      different payloads share one blob

Examples:
    >>> compute_content_hash(b"abc")
    'ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad'
    >>> compute_content_hash("abc") == compute_content_hash(b"abc")
    True

Tags:
    hashing, deduplication, blobs

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import hashlib


def compute_content_hash(content: bytes | str) -> str:
    """
    Compute the SHA-256 hex digest of a payload.

    Strings are hashed as their UTF-8 encoding, which is also the form the
    blob store writes.

    Args:
        content: Payload to hash

    Returns:
        64-character lowercase hex string
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


__all__ = ["compute_content_hash"]
