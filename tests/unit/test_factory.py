"""Tests for the service factory."""

from unittest.mock import patch

import pytest

from fragments.config.settings import BACKEND_AWS, BACKEND_MEMORY, FragmentsSettings
from fragments.factory import build_service, build_storage
from fragments.services.fragment_service import FragmentService
from fragments.storage.memory import MemoryStore, memory_backend


class TestBuildStorage:
    def test_memory_by_default(self):
        storage = build_storage(FragmentsSettings())
        assert isinstance(storage.metadata, MemoryStore)
        assert isinstance(storage.version_data, MemoryStore)

    def test_each_call_builds_fresh_stores(self):
        first = build_storage(FragmentsSettings(backend=BACKEND_MEMORY))
        second = build_storage(FragmentsSettings(backend=BACKEND_MEMORY))
        assert first.data is not second.data

    def test_aws_when_configured(self):
        settings = FragmentsSettings(s3_bucket="bucket", dynamodb_table="table")
        sentinel = memory_backend()
        with patch("fragments.storage.aws.aws_backend", return_value=sentinel) as aws_backend:
            storage = build_storage(settings)
        aws_backend.assert_called_once_with(settings)
        assert storage is sentinel

    def test_forced_aws_without_names(self):
        with pytest.raises(ValueError, match="AWS_S3_BUCKET_NAME"):
            build_storage(FragmentsSettings(backend=BACKEND_AWS))


class TestBuildService:
    def test_wires_settings(self):
        settings = FragmentsSettings(max_body_bytes=10, api_url="http://api")
        service = build_service(settings)
        assert isinstance(service, FragmentService)
        assert service._max_body_bytes == 10
        assert service._api_url == "http://api"

    def test_versions_share_storage(self):
        storage = memory_backend()
        service = build_service(FragmentsSettings(), storage=storage)
        assert service._storage is storage
        assert service.versions_manager._storage is storage
