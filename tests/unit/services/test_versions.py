"""Tests for VersionManager — snapshot, list, fetch, restore, delete."""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from fragments.exceptions import (
    StorageError,
    VersionDataNotFoundError,
    VersionIdFormatError,
    VersionNumberError,
    VersionOwnershipError,
)
from fragments.schemas.version import FragmentVersion
from fragments.services.versions import VersionContent
from tests.fixtures.samples import OWNER


@pytest_asyncio.fixture
async def stored_fragment(make_fragment):
    """A saved text/plain fragment holding b"one"."""
    fragment = make_fragment(id="frag")
    await fragment.set_data(b"one")
    return fragment


class TestSnapshot:
    @pytest.mark.asyncio
    async def test_first_snapshot_is_v1(self, stored_fragment, versions) -> None:
        version = await versions.snapshot(stored_fragment)
        assert version.id == "frag_v1"
        assert version.version_num == 1
        assert version.fragment_id == "frag"
        assert version.owner_id == OWNER
        assert version.type == "text/plain"
        assert version.size == 3

    @pytest.mark.asyncio
    async def test_numbers_increase(self, stored_fragment, versions) -> None:
        await versions.snapshot(stored_fragment)
        await stored_fragment.set_data(b"two")
        second = await versions.snapshot(stored_fragment)
        assert second.id == "frag_v2"
        assert await versions.latest_version_num(OWNER, "frag") == 2

    @pytest.mark.asyncio
    async def test_stores_content_and_metadata(self, stored_fragment, versions, storage) -> None:
        await versions.snapshot(stored_fragment)
        assert await storage.version_data.get(OWNER, "frag_v1") == b"one"
        record = await storage.version_metadata.get(OWNER, "frag_v1")
        assert FragmentVersion.model_validate_json(record).version_num == 1

    @pytest.mark.asyncio
    async def test_snapshot_does_not_touch_fragment(self, stored_fragment, versions) -> None:
        await versions.snapshot(stored_fragment)
        assert await stored_fragment.get_data() == b"one"

    @pytest.mark.asyncio
    async def test_next_number_follows_highest(self, stored_fragment, versions, storage) -> None:
        """Gaps in the chain do not cause number reuse."""
        await versions.snapshot(stored_fragment)
        await versions.snapshot(stored_fragment)
        await versions.snapshot(stored_fragment)
        await versions.delete(OWNER, "frag_v2")
        assert (await versions.snapshot(stored_fragment)).version_num == 4

    @pytest.mark.asyncio
    async def test_listing_failure_does_not_overwrite_v1(
        self, stored_fragment, versions, storage
    ) -> None:
        await versions.snapshot(stored_fragment)
        await stored_fragment.set_data(b"two")
        storage.version_metadata.list_keys = AsyncMock(side_effect=StorageError("boom"))

        with pytest.raises(StorageError):
            await versions.snapshot(stored_fragment)

        assert await storage.version_data.get(OWNER, "frag_v1") == b"one"
        record = await storage.version_metadata.get(OWNER, "frag_v1")
        assert FragmentVersion.model_validate_json(record).size == 3

    @pytest.mark.asyncio
    async def test_latest_version_num_propagates_listing_failure(
        self, versions, storage
    ) -> None:
        storage.version_metadata.list_keys = AsyncMock(side_effect=StorageError("boom"))
        with pytest.raises(StorageError):
            await versions.latest_version_num(OWNER, "frag")


class TestListVersions:
    @pytest.mark.asyncio
    async def test_empty(self, versions) -> None:
        assert await versions.list_versions(OWNER, "frag") == []
        assert await versions.latest_version_num(OWNER, "frag") == 0

    @pytest.mark.asyncio
    async def test_newest_first(self, stored_fragment, versions) -> None:
        for _ in range(11):
            await versions.snapshot(stored_fragment)
        ids = await versions.list_versions(OWNER, "frag")
        assert ids[0] == "frag_v11"
        assert ids[-1] == "frag_v1"
        assert ids[1] == "frag_v10"

    @pytest.mark.asyncio
    async def test_only_this_fragment(self, stored_fragment, make_fragment, versions) -> None:
        other = make_fragment(id="other")
        await other.set_data(b"x")
        await versions.snapshot(stored_fragment)
        await versions.snapshot(other)
        assert await versions.list_versions(OWNER, "frag") == ["frag_v1"]

    @pytest.mark.asyncio
    async def test_ignores_unparsable_keys(self, stored_fragment, versions, storage) -> None:
        await versions.snapshot(stored_fragment)
        await storage.version_metadata.put(OWNER, "garbage", "{}")
        assert await versions.list_versions(OWNER, "frag") == ["frag_v1"]

    @pytest.mark.asyncio
    async def test_expanded(self, stored_fragment, versions) -> None:
        await versions.snapshot(stored_fragment)
        await versions.snapshot(stored_fragment)
        expanded = await versions.list_versions(OWNER, "frag", expand=True)
        assert [v.version_num for v in expanded] == [2, 1]
        assert all(isinstance(v, FragmentVersion) for v in expanded)

    @pytest.mark.asyncio
    async def test_listing_failure_is_empty(self, versions, storage) -> None:
        storage.version_metadata.list_keys = AsyncMock(side_effect=StorageError("boom"))
        assert await versions.list_versions(OWNER, "frag") == []


class TestFetch:
    @pytest.mark.asyncio
    async def test_returns_metadata_and_data(self, stored_fragment, versions) -> None:
        await versions.snapshot(stored_fragment)
        content = await versions.fetch(OWNER, "frag", "frag_v1")
        assert isinstance(content, VersionContent)
        assert content.data == b"one"
        assert content.metadata.id == "frag_v1"

    @pytest.mark.asyncio
    async def test_bad_id_is_none(self, versions) -> None:
        assert await versions.fetch(OWNER, "frag", "frag-v1") is None
        assert await versions.fetch(OWNER, "frag", "frag_vX") is None

    @pytest.mark.asyncio
    async def test_other_fragment_is_none(self, stored_fragment, versions) -> None:
        await versions.snapshot(stored_fragment)
        assert await versions.fetch(OWNER, "other", "frag_v1") is None

    @pytest.mark.asyncio
    async def test_unknown_version_is_none(self, versions) -> None:
        assert await versions.fetch(OWNER, "frag", "frag_v9") is None

    @pytest.mark.asyncio
    async def test_metadata_read_error_is_none(self, versions, storage) -> None:
        storage.version_metadata.get = AsyncMock(side_effect=StorageError("boom"))
        assert await versions.fetch(OWNER, "frag", "frag_v1") is None

    @pytest.mark.asyncio
    async def test_missing_data_raises(self, stored_fragment, versions, storage) -> None:
        await versions.snapshot(stored_fragment)
        await storage.version_data.delete(OWNER, "frag_v1")
        with pytest.raises(StorageError):
            await versions.fetch(OWNER, "frag", "frag_v1")


class TestRestore:
    @pytest.mark.asyncio
    async def test_restores_content(self, stored_fragment, versions) -> None:
        await versions.snapshot(stored_fragment)
        await stored_fragment.set_data(b"changed!")

        restored = await versions.restore(stored_fragment, "frag_v1")
        assert restored is stored_fragment
        assert await stored_fragment.get_data() == b"one"
        assert stored_fragment.size == 3

    @pytest.mark.asyncio
    async def test_keeps_later_versions(self, stored_fragment, versions) -> None:
        await versions.snapshot(stored_fragment)
        await versions.snapshot(stored_fragment)
        await versions.restore(stored_fragment, "frag_v1")
        assert await versions.list_versions(OWNER, "frag") == ["frag_v2", "frag_v1"]

    @pytest.mark.asyncio
    async def test_bad_format(self, stored_fragment, versions) -> None:
        with pytest.raises(VersionIdFormatError):
            await versions.restore(stored_fragment, "nonsense")

    @pytest.mark.asyncio
    async def test_bad_number(self, stored_fragment, versions) -> None:
        with pytest.raises(VersionNumberError):
            await versions.restore(stored_fragment, "frag_vabc")

    @pytest.mark.asyncio
    async def test_other_fragment(self, stored_fragment, versions) -> None:
        with pytest.raises(VersionOwnershipError, match="does not belong"):
            await versions.restore(stored_fragment, "other_v1")

    @pytest.mark.asyncio
    async def test_missing_data(self, stored_fragment, versions) -> None:
        with pytest.raises(VersionDataNotFoundError, match="Version data not found"):
            await versions.restore(stored_fragment, "frag_v7")


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_all(self, stored_fragment, versions, storage) -> None:
        await versions.snapshot(stored_fragment)
        await versions.snapshot(stored_fragment)
        assert await versions.delete_all(OWNER, "frag") == 2
        assert await versions.list_versions(OWNER, "frag") == []
        assert await storage.version_data.get(OWNER, "frag_v1") is None

    @pytest.mark.asyncio
    async def test_delete_all_none(self, versions) -> None:
        assert await versions.delete_all(OWNER, "frag") == 0
