"""Service factory — wires storage, versions and the fragment service.

The backend is picked here, once, from FragmentsSettings:
  FRAGMENTS_BACKEND=memory  always in-memory
  FRAGMENTS_BACKEND=aws     S3 + DynamoDB (bucket and table required)
  FRAGMENTS_BACKEND=auto    AWS when AWS_S3_BUCKET_NAME and
                            AWS_DYNAMODB_TABLE_NAME are both set
"""

from __future__ import annotations

import structlog

from fragments.config.settings import FragmentsSettings, get_settings
from fragments.services.fragment_service import FragmentService
from fragments.services.versions import VersionManager
from fragments.storage.base import StorageBackend
from fragments.storage.memory import memory_backend

logger = structlog.get_logger()


def build_storage(settings: FragmentsSettings) -> StorageBackend:
    """Return the StorageBackend the settings ask for."""
    if settings.use_aws():
        if not settings.has_aws_storage():
            raise ValueError(
                "AWS backend requires AWS_S3_BUCKET_NAME and AWS_DYNAMODB_TABLE_NAME"
            )
        # boto3 is only imported when the AWS backend is wired
        from fragments.storage.aws import aws_backend

        storage = aws_backend(settings)
    else:
        storage = memory_backend()

    logger.info("Storage backend configured", **settings.storage_summary())
    return storage


def build_service(
    settings: FragmentsSettings | None = None,
    storage: StorageBackend | None = None,
) -> FragmentService:
    """Build a FragmentService whose VersionManager shares its backend."""
    settings = settings or get_settings()
    storage = storage or build_storage(settings)
    return FragmentService(
        storage,
        VersionManager(storage),
        max_body_bytes=settings.max_body_bytes,
        api_url=settings.api_url,
    )
