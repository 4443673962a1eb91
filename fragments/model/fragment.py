"""Fragment — the typed, owned record behind every piece of stored content.

Metadata and content live in separate stores. Metadata is persisted as
JSON text with camelCase keys; content is stored as raw bytes under the
same (ownerId, id) pair.

Mutation Rules:
- ownerId and type never change after creation.
- size always equals the length of the last content written.
- set_data overwrites in place. Callers that want history snapshot
  through the injected VersionManager before calling it.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional, Union
from uuid import uuid4

import structlog
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, StrictInt, field_validator, model_validator

from fragments import formats as registry
from fragments.exceptions import StorageError
from fragments.storage.base import StorageBackend
from fragments.utils.hashing import hash_owner

if TYPE_CHECKING:
    from fragments.schemas.version import FragmentVersion
    from fragments.services.versions import VersionContent, VersionManager

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Fragment(BaseModel):
    """A unit of typed content owned by one user.

    Storage and the VersionManager are injected at construction and are
    not part of the serialized record.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, description="Generated as a UUID4 when absent")
    owner_id: str = Field(..., alias="ownerId", min_length=1)
    created: Optional[datetime] = Field(default=None)
    updated: Optional[datetime] = Field(default=None)
    type: str = Field(..., min_length=1, description="MIME type, optionally with charset")
    size: StrictInt = Field(default=0, ge=0, description="Content size in bytes")

    _storage: Any = PrivateAttr()
    _versions: Any = PrivateAttr(default=None)

    def __init__(
        self,
        *,
        storage: StorageBackend,
        versions: VersionManager | None = None,
        **data: Any,
    ) -> None:
        super().__init__(**data)
        self._storage = storage
        self._versions = versions

    @field_validator("type")
    @classmethod
    def must_be_supported(cls, v: str) -> str:
        """The base type must be one the format registry knows."""
        if not registry.is_supported_type(v):
            raise ValueError(f"invalid type: {v}")
        return v

    @model_validator(mode="after")
    def fill_defaults(self) -> "Fragment":
        """Generate an id and default both timestamps to now."""
        if not self.id:
            self.id = str(uuid4())
        if self.created is None:
            self.created = _utcnow()
        if self.updated is None:
            self.updated = self.created
        return self

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @classmethod
    async def by_user(
        cls,
        storage: StorageBackend,
        owner_id: str,
        expand: bool = False,
        *,
        versions: VersionManager | None = None,
    ) -> Union[list[Fragment], list[str]]:
        """All of an owner's fragments, as ids or (expand=True) entities."""
        if not owner_id:
            raise ValueError("owner_id is required")

        ids = await storage.metadata.list_keys(owner_id)
        if not expand:
            logger.debug("Returning fragment ids", owner=hash_owner(owner_id), count=len(ids))
            return ids

        fragments: list[Fragment] = []
        for fragment_id in ids:
            record = await storage.metadata.get(owner_id, fragment_id)
            if record is None:
                continue
            fields = json.loads(record)
            # Older records were written without an owner
            fields.setdefault("ownerId", owner_id)
            fragments.append(cls(storage=storage, versions=versions, **fields))

        logger.debug("Expanded fragment metadata", owner=hash_owner(owner_id), count=len(fragments))
        return fragments

    @classmethod
    async def by_id(
        cls,
        storage: StorageBackend,
        owner_id: str,
        fragment_id: str,
        *,
        versions: VersionManager | None = None,
    ) -> Fragment | None:
        """Load one fragment, or None when it is missing or unreadable."""
        try:
            record = await storage.metadata.get(owner_id, fragment_id)
            if record is None:
                logger.debug("Fragment not found", owner=hash_owner(owner_id), fragment_id=fragment_id)
                return None
            fields = json.loads(record)
            # Older records were written without an owner
            fields.setdefault("ownerId", owner_id)
            return cls(storage=storage, versions=versions, **fields)
        except Exception as exc:
            logger.error(
                "Error reading fragment",
                owner=hash_owner(owner_id),
                fragment_id=fragment_id,
                error=str(exc),
            )
            return None

    @classmethod
    async def delete(
        cls,
        storage: StorageBackend,
        owner_id: str,
        fragment_id: str,
        *,
        versions: VersionManager | None = None,
    ) -> None:
        """Remove metadata and content, then every version if a manager is given."""
        try:
            await storage.metadata.delete(owner_id, fragment_id)
            await storage.data.delete(owner_id, fragment_id)
            if versions is not None:
                await versions.delete_all(owner_id, fragment_id)
        except Exception as exc:
            logger.error(
                "Error deleting fragment",
                owner=hash_owner(owner_id),
                fragment_id=fragment_id,
                error=str(exc),
            )
            raise
        logger.info("Fragment deleted", owner=hash_owner(owner_id), fragment_id=fragment_id)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_record(self) -> str:
        """Serialize to the JSON text stored by the metadata adapters."""
        return self.model_dump_json(by_alias=True)

    def metadata(self) -> dict[str, Any]:
        """JSON-ready metadata with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)

    async def save(self) -> None:
        """Persist metadata, refreshing the updated timestamp."""
        self.updated = _utcnow()
        await self._storage.metadata.put(self.owner_id, self.id, self.to_record())
        logger.debug("Fragment metadata saved", fragment_id=self.id)

    async def get_data(self) -> bytes:
        """Read the current content bytes."""
        data = await self._storage.data.get(self.owner_id, self.id)
        if data is None:
            raise StorageError("fragment data not found", fragment_id=self.id)
        if isinstance(data, str):
            data = data.encode("utf-8")
        logger.debug("Fragment data read", fragment_id=self.id, size=len(data))
        return data

    async def set_data(self, data: bytes) -> None:
        """Replace the content, then update size and persist metadata.

        A failing step aborts the steps after it.
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(f"data must be bytes, got {type(data).__name__}")
        data = bytes(data)

        await self._storage.data.put(self.owner_id, self.id, data)
        self.size = len(data)
        self.updated = _utcnow()
        await self.save()
        logger.info("Fragment data saved", fragment_id=self.id, size=self.size)

    # ------------------------------------------------------------------
    # Type information
    # ------------------------------------------------------------------

    @property
    def mime_type(self) -> str:
        """The type without parameters, e.g. text/plain for text/plain; charset=utf-8."""
        base, _ = registry.parse_media_type(self.type)
        return base

    @property
    def is_text(self) -> bool:
        return self.mime_type.startswith("text/")

    @property
    def formats(self) -> list[str]:
        """Extensions this fragment can be read as."""
        return registry.supported_formats(self.mime_type)

    def can_convert_to(self, extension: str) -> bool:
        """Whether a read with this extension is allowed."""
        ext = registry.normalize_extension(extension)
        if self.mime_type == "text/plain":
            return ext == "txt"
        return ext in self.formats

    @staticmethod
    def is_supported_type(value: object) -> bool:
        """Ingress gate for Content-Type values; never raises."""
        return registry.is_supported_type(value)

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def _require_versions(self) -> VersionManager:
        if self._versions is None:
            raise RuntimeError(f"No VersionManager configured for fragment {self.id}")
        return self._versions

    async def snapshot(self) -> FragmentVersion:
        """Record the current content as the next version."""
        return await self._require_versions().snapshot(self)

    async def get_versions(
        self, expand: bool = False
    ) -> Union[list[FragmentVersion], list[str]]:
        return await self._require_versions().list_versions(self.owner_id, self.id, expand)

    async def get_version(self, version_id: str) -> VersionContent | None:
        return await self._require_versions().fetch(self.owner_id, self.id, version_id)

    async def restore_version(self, version_id: str) -> Fragment:
        """Make a past version's bytes the current content (no snapshot)."""
        return await self._require_versions().restore(self, version_id)
