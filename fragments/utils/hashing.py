"""Deterministic hashing utilities for Fragments.

Owner ids are usually e-mail addresses. They are hashed before being
bound to log context so that raw identities never reach log sinks.
"""

import hashlib
import json
from typing import Any


def hash_owner(owner_id: str) -> str:
    """Return the SHA-256 hex digest of an owner id."""
    return hashlib.sha256(owner_id.encode("utf-8")).hexdigest()


def compute_content_hash(data: Any) -> str:
    """Compute SHA-256 hash of raw bytes or JSON-serializable data.

    Bytes are hashed as-is; anything else is serialized with sorted keys
    first so identical data always produces identical hashes.

    Args:
        data: bytes, str, or any JSON-serializable value (including a
              Pydantic model with .model_dump()).

    Returns:
        Hex-encoded SHA-256 hash string (64 characters).
    """
    if isinstance(data, bytes):
        return hashlib.sha256(data).hexdigest()
    if isinstance(data, str):
        return hashlib.sha256(data.encode("utf-8")).hexdigest()

    if hasattr(data, "model_dump"):
        serializable = data.model_dump(mode="json")
    else:
        serializable = data

    serialized = json.dumps(serializable, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(serialized).hexdigest()
