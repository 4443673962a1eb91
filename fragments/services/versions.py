"""VersionManager — the append-only history behind every fragment.

Each snapshot stores the fragment's pre-update content under the id
``<fragmentId>_v<n>``, in the same owner partition as the fragment.
Version numbers grow by one from the highest existing number; restoring
an old version writes its bytes as the current content and never trims
the chain.

Single-writer assumption: two concurrent updates of one fragment can
snapshot the same content and race for the same number. There is no
locking here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

import structlog

from fragments.exceptions import (
    StorageError,
    VersionDataNotFoundError,
    VersionIdError,
    VersionOwnershipError,
)
from fragments.schemas.version import FragmentVersion, parse_version_id
from fragments.storage.base import StorageBackend
from fragments.utils.hashing import compute_content_hash, hash_owner

if TYPE_CHECKING:
    from fragments.model.fragment import Fragment

logger = structlog.get_logger()


@dataclass(frozen=True)
class VersionContent:
    """A version's metadata together with its stored bytes."""

    metadata: FragmentVersion
    data: bytes


class VersionManager:
    """Creates, lists, fetches, restores and deletes fragment versions."""

    def __init__(self, storage: StorageBackend) -> None:
        self._storage = storage

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def snapshot(self, fragment: Fragment) -> FragmentVersion:
        """Store the fragment's current content as its next version.

        Metadata is written before content. A failure in between can
        leave a metadata record without bytes; nothing is rolled back.

        Raises:
            StorageError: existing versions could not be listed. Nothing
                is written.
        """
        data = await fragment.get_data()
        latest = await self.latest_version_num(fragment.owner_id, fragment.id)

        version = FragmentVersion(
            fragment_id=fragment.id,
            owner_id=fragment.owner_id,
            type=fragment.type,
            size=fragment.size,
            version_num=latest + 1,
        )

        await self._storage.version_metadata.put(fragment.owner_id, version.id, version.to_record())
        await self._storage.version_data.put(fragment.owner_id, version.id, data)

        logger.info(
            "Fragment version created",
            fragment_id=fragment.id,
            version_id=version.id,
            version_num=version.version_num,
            size=version.size,
            content_hash=compute_content_hash(data),
        )
        return version

    async def restore(self, fragment: Fragment, version_id: str) -> Fragment:
        """Make a version's bytes the fragment's current content.

        Does not snapshot the content being replaced.

        Raises:
            VersionIdError: the id cannot be parsed.
            VersionOwnershipError: the id names another fragment.
            VersionDataNotFoundError: no content is stored for the id.
        """
        ref = parse_version_id(version_id)
        if ref.fragment_id != fragment.id:
            raise VersionOwnershipError(
                f"Version does not belong to this fragment: {version_id}",
                fragment_id=fragment.id,
            )

        data = await self._storage.version_data.get(fragment.owner_id, version_id)
        if data is None:
            raise VersionDataNotFoundError(
                f"Version data not found: {version_id}",
                fragment_id=fragment.id,
            )
        if isinstance(data, str):
            data = data.encode("utf-8")

        await fragment.set_data(data)
        logger.info(
            "Fragment restored to version",
            fragment_id=fragment.id,
            version_id=version_id,
            size=fragment.size,
        )
        return fragment

    async def delete(self, owner_id: str, version_id: str) -> None:
        """Remove one version's metadata and content."""
        await self._storage.version_metadata.delete(owner_id, version_id)
        await self._storage.version_data.delete(owner_id, version_id)
        logger.debug("Fragment version deleted", owner=hash_owner(owner_id), version_id=version_id)

    async def delete_all(self, owner_id: str, fragment_id: str) -> int:
        """Remove every version of a fragment. Returns how many were removed."""
        version_ids = await self.list_versions(owner_id, fragment_id)
        for version_id in version_ids:
            await self.delete(owner_id, version_id)
        return len(version_ids)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def _numbered_keys(self, owner_id: str, fragment_id: str) -> list[tuple[int, str]]:
        """(version_num, version_id) pairs of a fragment, newest first.

        Storage errors propagate.
        """
        keys = await self._storage.version_metadata.list_keys(owner_id)

        numbered: list[tuple[int, str]] = []
        for key in keys:
            try:
                ref = parse_version_id(key)
            except VersionIdError:
                continue
            if ref.fragment_id == fragment_id:
                numbered.append((ref.version_num, key))
        numbered.sort(reverse=True)
        return numbered

    async def list_versions(
        self,
        owner_id: str,
        fragment_id: str,
        expand: bool = False,
    ) -> Union[list[FragmentVersion], list[str]]:
        """A fragment's versions, newest first, as ids or full records.

        Listing failures are logged and yield an empty list.
        """
        try:
            numbered = await self._numbered_keys(owner_id, fragment_id)

            if not expand:
                return [key for _, key in numbered]

            versions: list[FragmentVersion] = []
            for _, key in numbered:
                record = await self._storage.version_metadata.get(owner_id, key)
                if record is None:
                    continue
                versions.append(FragmentVersion.model_validate_json(record))
            versions.sort(key=lambda v: v.version_num, reverse=True)
            return versions

        except Exception as exc:
            logger.error(
                "Error listing fragment versions",
                owner=hash_owner(owner_id),
                fragment_id=fragment_id,
                error=str(exc),
            )
            return []

    async def latest_version_num(self, owner_id: str, fragment_id: str) -> int:
        """Highest version number stored for a fragment, 0 when none.

        Listing failures propagate, unlike in list_versions.
        """
        numbered = await self._numbered_keys(owner_id, fragment_id)
        if not numbered:
            return 0
        return numbered[0][0]

    async def fetch(
        self,
        owner_id: str,
        fragment_id: str,
        version_id: str,
    ) -> VersionContent | None:
        """Load a version of ``fragment_id``, or None.

        Unparsable ids, ids of other fragments, and missing or unreadable
        metadata all yield None.
        """
        try:
            ref = parse_version_id(version_id)
        except VersionIdError as exc:
            logger.warning("Invalid version ID", fragment_id=fragment_id, error=str(exc))
            return None

        if ref.fragment_id != fragment_id:
            logger.warning(
                "Version does not belong to fragment",
                fragment_id=fragment_id,
                version_id=version_id,
            )
            return None

        try:
            record = await self._storage.version_metadata.get(owner_id, version_id)
        except Exception as exc:
            logger.error("Error reading fragment version", version_id=version_id, error=str(exc))
            return None
        if record is None:
            return None

        metadata = FragmentVersion.model_validate_json(record)
        data = await self._storage.version_data.get(owner_id, version_id)
        if data is None:
            raise StorageError(
                f"version data missing for existing metadata: {version_id}",
                fragment_id=fragment_id,
                key=version_id,
            )
        if isinstance(data, str):
            data = data.encode("utf-8")

        return VersionContent(metadata=metadata, data=data)
