"""Storage adapter interface and the backend bundle the model depends on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Union, runtime_checkable

StoredValue = Union[bytes, str]


@runtime_checkable
class KeyValueStore(Protocol):
    """Key-value storage partitioned by owner.

    Implementations guarantee atomic put/get/delete per key. Nothing
    spanning several keys is atomic. Deleting a missing key is a no-op.
    """

    async def put(self, owner_id: str, key: str, value: StoredValue) -> None: ...

    async def get(self, owner_id: str, key: str) -> StoredValue | None: ...

    async def delete(self, owner_id: str, key: str) -> None: ...

    async def list_keys(self, owner_id: str) -> list[str]: ...


@dataclass(frozen=True)
class StorageBackend:
    """The four stores behind fragments and their versions.

    Metadata stores hold JSON text; data stores hold raw bytes.
    """

    metadata: KeyValueStore
    data: KeyValueStore
    version_metadata: KeyValueStore
    version_data: KeyValueStore
