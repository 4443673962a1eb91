"""MemoryStore — process-local key-value storage.

Each instance owns its own maps, so tests and processes that build
separate backends never share state.
"""

from __future__ import annotations

import threading

import structlog

from fragments.storage.base import StorageBackend, StoredValue

logger = structlog.get_logger()


def _validate_key(owner_id: str, key: str) -> None:
    if not isinstance(owner_id, str) or not owner_id:
        raise ValueError(f"owner_id must be a non-empty string, got {owner_id!r}")
    if not isinstance(key, str) or not key:
        raise ValueError(f"key must be a non-empty string, got {key!r}")


class MemoryStore:
    """In-memory KeyValueStore.

    Thread-safe via a re-entrant lock. Values are stored as given
    (bytes are copied so later mutation of the caller's buffer is
    not visible).
    """

    def __init__(self, name: str = "memory") -> None:
        self.name = name
        self._lock = threading.RLock()
        self._db: dict[str, dict[str, StoredValue]] = {}

    async def put(self, owner_id: str, key: str, value: StoredValue) -> None:
        _validate_key(owner_id, key)
        if not isinstance(value, (bytes, bytearray, memoryview, str)):
            raise TypeError(f"value must be bytes or str, got {type(value).__name__}")
        stored: StoredValue = value if isinstance(value, str) else bytes(value)
        with self._lock:
            self._db.setdefault(owner_id, {})[key] = stored

    async def get(self, owner_id: str, key: str) -> StoredValue | None:
        _validate_key(owner_id, key)
        with self._lock:
            return self._db.get(owner_id, {}).get(key)

    async def delete(self, owner_id: str, key: str) -> None:
        _validate_key(owner_id, key)
        with self._lock:
            partition = self._db.get(owner_id)
            if partition is None or key not in partition:
                logger.debug("Delete of missing key ignored", store=self.name, key=key)
                return
            del partition[key]
            if not partition:
                del self._db[owner_id]

    async def list_keys(self, owner_id: str) -> list[str]:
        if not isinstance(owner_id, str) or not owner_id:
            raise ValueError(f"owner_id must be a non-empty string, got {owner_id!r}")
        with self._lock:
            return list(self._db.get(owner_id, {}))

    def count(self) -> int:
        """Total number of stored entries across all owners."""
        with self._lock:
            return sum(len(partition) for partition in self._db.values())


def memory_backend() -> StorageBackend:
    """A StorageBackend made of four fresh MemoryStores."""
    return StorageBackend(
        metadata=MemoryStore("metadata"),
        data=MemoryStore("data"),
        version_metadata=MemoryStore("version_metadata"),
        version_data=MemoryStore("version_data"),
    )
