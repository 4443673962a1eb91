"""Shared test fixtures for Fragments tests.

Every fixture builds its own in-memory backend, so no test sees another
test's fragments.
"""

import pytest

from fragments.model.fragment import Fragment
from fragments.services.fragment_service import FragmentService
from fragments.services.versions import VersionManager
from fragments.storage.memory import memory_backend
from tests.fixtures.samples import OWNER, make_image


@pytest.fixture
def storage():
    """A fresh in-memory StorageBackend."""
    return memory_backend()


@pytest.fixture
def versions(storage):
    return VersionManager(storage)


@pytest.fixture
def service(storage, versions):
    """A FragmentService with no body limit and a fixed API url."""
    return FragmentService(storage, versions, api_url="http://localhost:8080")


@pytest.fixture
def make_fragment(storage, versions):
    """Factory for unsaved fragments bound to the test backend."""

    def _make(type: str = "text/plain", owner_id: str = OWNER, **fields) -> Fragment:
        return Fragment(
            storage=storage,
            versions=versions,
            owner_id=owner_id,
            type=type,
            **fields,
        )

    return _make


@pytest.fixture
def sample_png() -> bytes:
    return make_image("PNG")


@pytest.fixture
def sample_rgba_png() -> bytes:
    return make_image("PNG", mode="RGBA")
