"""Storage layer — key-value adapters for fragment metadata and content.

The model only sees the KeyValueStore protocol; which implementation
backs it is decided once, in fragments.factory.
"""

from fragments.storage.base import KeyValueStore, StorageBackend
from fragments.storage.memory import MemoryStore, memory_backend

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "StorageBackend",
    "memory_backend",
]
