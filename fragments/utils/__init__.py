"""Fragments utilities — hashing, logging, and shared helpers."""

from fragments.utils.hashing import compute_content_hash, hash_owner
from fragments.utils.logging import configure_logging

__all__ = [
    "compute_content_hash",
    "configure_logging",
    "hash_owner",
]
