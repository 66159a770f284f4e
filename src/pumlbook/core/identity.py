"""Content-addressed identifiers for diagram sources.

The identity is two 64-bit BLAKE2b digests of the UTF-8 content, the second
one over the content followed by a single ``0x00`` byte, joined into a
128-bit UUID.  It depends on the bytes alone, so it is stable across
positions, documents, runs and processes, and it doubles as the artifact
file stem.

Collisions are an accepted residual risk: the identifier only gates a cache.
Changing the construction changes every file name and invalidates existing
caches.
"""

from __future__ import annotations

import hashlib
import uuid

_DIGEST_SIZE = 8
_DOMAIN_SUFFIX = b"\x00"


def _hash64(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=_DIGEST_SIZE).digest()


def content_identity(content: str | bytes) -> uuid.UUID:
    """Return the 128-bit identity of a diagram's raw content."""
    data = content.encode("utf-8") if isinstance(content, str) else content
    return uuid.UUID(bytes=_hash64(data) + _hash64(data + _DOMAIN_SUFFIX))
