"""FragmentService — the operations an HTTP layer exposes over fragments.

Composes the Fragment entity, the VersionManager and the converter:
create, update with a snapshot of the previous content, read with
on-the-fly conversion, delete with its versions, metadata search, and
version listing, fetch and restore.

Every method is scoped to one owner. Unknown fragments yield None;
format problems raise the FragmentsError subclasses a transport layer
maps to client errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Union

import structlog

from fragments import formats
from fragments.converter import convert
from fragments.exceptions import (
    ContentTypeMismatchError,
    PayloadTooLargeError,
    UnsupportedConversionError,
    UnsupportedMediaTypeError,
)
from fragments.model.fragment import Fragment
from fragments.schemas.search import MODIFIED_THRESHOLD_SECONDS, SearchCriteria
from fragments.schemas.version import FragmentVersion
from fragments.services.versions import VersionContent, VersionManager
from fragments.storage.base import StorageBackend
from fragments.utils.hashing import hash_owner

logger = structlog.get_logger()


@dataclass(frozen=True)
class RenderedContent:
    """Bytes ready to send, with the MIME type they should be sent as."""

    data: bytes
    mime_type: str


def split_extension(requested_id: str) -> tuple[str, str | None]:
    """Split ``abc.html`` into ``("abc", "html")``; no dot gives ``(id, None)``."""
    stem, dot, ext = requested_id.rpartition(".")
    if not dot or not stem or not ext:
        return requested_id, None
    return stem, ext.lower()


class FragmentService:
    """Owner-scoped fragment operations over one StorageBackend."""

    def __init__(
        self,
        storage: StorageBackend,
        versions: VersionManager | None = None,
        *,
        max_body_bytes: int | None = None,
        api_url: str = "",
    ) -> None:
        self._storage = storage
        self._versions = versions or VersionManager(storage)
        self._max_body_bytes = max_body_bytes
        self._api_url = api_url.rstrip("/")

    @property
    def versions_manager(self) -> VersionManager:
        return self._versions

    # ------------------------------------------------------------------
    # Ingress checks
    # ------------------------------------------------------------------

    def _check_body(self, content_type: str, data: bytes) -> None:
        if not Fragment.is_supported_type(content_type):
            raise UnsupportedMediaTypeError(
                f"Unsupported Media Type: {content_type}",
                content_type=content_type,
            )
        if self._max_body_bytes is not None and len(data) > self._max_body_bytes:
            raise PayloadTooLargeError(
                f"Body of {len(data)} bytes exceeds the {self._max_body_bytes} byte limit"
            )

    # ------------------------------------------------------------------
    # Fragments
    # ------------------------------------------------------------------

    async def create(self, owner_id: str, content_type: str, data: bytes) -> Fragment:
        """Create a fragment holding ``data``."""
        self._check_body(content_type, data)

        fragment = Fragment(
            storage=self._storage,
            versions=self._versions,
            owner_id=owner_id,
            type=content_type,
            size=len(data),
        )
        await fragment.save()
        await fragment.set_data(data)

        logger.info(
            "Fragment created",
            owner=hash_owner(owner_id),
            fragment_id=fragment.id,
            type=fragment.type,
            size=fragment.size,
        )
        return fragment

    async def get(self, owner_id: str, fragment_id: str) -> Fragment | None:
        return await Fragment.by_id(
            self._storage, owner_id, fragment_id, versions=self._versions
        )

    async def list(
        self, owner_id: str, expand: bool = False
    ) -> Union[list[Fragment], list[str]]:
        return await Fragment.by_user(
            self._storage, owner_id, expand, versions=self._versions
        )

    async def info(self, owner_id: str, fragment_id: str) -> dict[str, Any] | None:
        """Fragment metadata as a JSON-ready dict."""
        fragment = await self.get(owner_id, fragment_id)
        if fragment is None:
            return None
        return fragment.metadata()

    def location(self, fragment: Fragment) -> str:
        """URL of a fragment, relative when no API_URL is configured."""
        return f"{self._api_url}/v1/fragments/{fragment.id}"

    async def update(
        self,
        owner_id: str,
        fragment_id: str,
        content_type: str,
        data: bytes,
    ) -> Fragment | None:
        """Replace a fragment's content, keeping the old content as a version.

        Raises:
            UnsupportedMediaTypeError: content_type is not supported.
            ContentTypeMismatchError: content_type differs from the fragment's.
            PayloadTooLargeError: data is over the configured limit.
        """
        self._check_body(content_type, data)

        fragment = await self.get(owner_id, fragment_id)
        if fragment is None:
            return None

        if fragment.type != content_type:
            logger.warning(
                "Content type mismatch",
                fragment_id=fragment_id,
                expected=fragment.type,
                received=content_type,
            )
            raise ContentTypeMismatchError(
                "Content-Type cannot be changed after fragment is created",
                fragment_id=fragment_id,
            )

        await fragment.snapshot()
        await fragment.set_data(data)
        logger.info("Fragment updated", fragment_id=fragment_id, size=fragment.size)
        return fragment

    async def read(self, owner_id: str, requested_id: str) -> RenderedContent | None:
        """Read a fragment, converting when the id carries an extension.

        ``abc`` returns the stored bytes with the fragment's own type;
        ``abc.html`` returns them rendered as HTML.

        Raises:
            UnsupportedConversionError: the extension is not one of the
                fragment's formats. No conversion is attempted.
            ConversionError: the converter failed.
        """
        fragment_id, extension = split_extension(requested_id)
        fragment = await self.get(owner_id, fragment_id)
        if fragment is None:
            # Ids may legitimately contain dots
            if extension is not None:
                fragment = await self.get(owner_id, requested_id)
                if fragment is not None:
                    return RenderedContent(await fragment.get_data(), fragment.type)
            return None

        if extension is None:
            return RenderedContent(await fragment.get_data(), fragment.type)

        if not fragment.can_convert_to(extension):
            logger.warning(
                "Conversion not supported",
                fragment_id=fragment_id,
                source_type=fragment.type,
                target=extension,
                supported=fragment.formats,
            )
            raise UnsupportedConversionError(
                f"Cannot convert fragment to {extension}",
                fragment_id=fragment_id,
                extension=extension,
            )

        data = await fragment.get_data()
        converted = await convert(data, fragment.type, extension, fragment_id=fragment_id)
        return RenderedContent(converted, formats.mime_type_for(extension))

    async def delete(self, owner_id: str, fragment_id: str) -> bool:
        """Delete a fragment and its versions. False when it did not exist."""
        fragment = await self.get(owner_id, fragment_id)
        if fragment is None:
            return False
        await Fragment.delete(
            self._storage, owner_id, fragment_id, versions=self._versions
        )
        return True

    async def search(
        self, owner_id: str, criteria: SearchCriteria
    ) -> Union[list[Fragment], list[str]]:
        """Filter an owner's fragments by type, dates and size."""
        results: list[Fragment] = await self.list(owner_id, expand=True)

        if criteria.type:
            results = [f for f in results if criteria.type in f.type]

        before = criteria.before_cutoff()
        if before is not None:
            results = [f for f in results if f.created <= before]

        after = criteria.after_cutoff()
        if after is not None:
            results = [f for f in results if f.created >= after]

        modified = criteria.modified_cutoff()
        if modified is not None:
            threshold = timedelta(seconds=MODIFIED_THRESHOLD_SECONDS)
            results = [
                f
                for f in results
                if abs(f.updated - f.created) > threshold and f.updated >= modified
            ]

        if criteria.min_size is not None:
            results = [f for f in results if f.size >= criteria.min_size]

        if criteria.max_size is not None:
            results = [f for f in results if f.size <= criteria.max_size]

        logger.info(
            "Search results found",
            owner=hash_owner(owner_id),
            count=len(results),
            criteria=criteria.model_dump(mode="json", exclude_none=True),
        )
        if criteria.expand:
            return results
        return [f.id for f in results]

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    async def versions(
        self, owner_id: str, fragment_id: str, expand: bool = False
    ) -> Union[list[FragmentVersion], list[str], None]:
        fragment = await self.get(owner_id, fragment_id)
        if fragment is None:
            return None
        return await fragment.get_versions(expand)

    async def get_version(
        self, owner_id: str, fragment_id: str, version_id: str
    ) -> VersionContent | None:
        fragment = await self.get(owner_id, fragment_id)
        if fragment is None:
            return None
        return await fragment.get_version(version_id)

    async def restore_version(
        self, owner_id: str, fragment_id: str, version_id: str
    ) -> Fragment | None:
        """Restore a fragment to a past version; None when the fragment is unknown.

        Raises:
            VersionIdError, VersionOwnershipError, VersionDataNotFoundError
        """
        fragment = await self.get(owner_id, fragment_id)
        if fragment is None:
            return None
        return await fragment.restore_version(version_id)
