"""Centralized environment-based settings for Fragments.

Reads configuration from environment variables with sensible defaults.
The storage backend is chosen from these settings once, at wiring time
(see fragments.factory); nothing below the factory reads the environment.

Usage:
    from fragments.config.settings import get_settings
    settings = get_settings()
"""

import os
from dataclasses import dataclass

DEFAULT_MAX_BODY_BYTES = 5 * 1024 * 1024

BACKEND_AUTO = "auto"
BACKEND_MEMORY = "memory"
BACKEND_AWS = "aws"


@dataclass(frozen=True)
class FragmentsSettings:
    """Immutable application settings loaded from environment."""

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Storage
    backend: str = BACKEND_AUTO
    aws_region: str = "us-east-1"
    s3_bucket: str = ""
    dynamodb_table: str = ""
    s3_endpoint_url: str | None = None
    dynamodb_endpoint_url: str | None = None

    # Ingress
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    api_url: str = ""

    def has_aws_storage(self) -> bool:
        return bool(self.s3_bucket and self.dynamodb_table)

    def use_aws(self) -> bool:
        """Whether the AWS backend should be wired in."""
        if self.backend == BACKEND_AWS:
            return True
        if self.backend == BACKEND_MEMORY:
            return False
        return self.has_aws_storage()

    def storage_summary(self) -> dict[str, str | bool]:
        """Return which backend is configured, for startup logging."""
        return {
            "backend": BACKEND_AWS if self.use_aws() else BACKEND_MEMORY,
            "s3_bucket": self.s3_bucket,
            "dynamodb_table": self.dynamodb_table,
            "aws_configured": self.has_aws_storage(),
        }


def get_settings() -> FragmentsSettings:
    """Load settings from environment variables.

    Environment variables (all optional):
        FRAGMENTS_LOG_LEVEL: Logging level (default: INFO)
        FRAGMENTS_LOG_JSON: Render logs as JSON (default: true)
        FRAGMENTS_BACKEND: auto, memory or aws (default: auto)
        AWS_REGION: Region for S3 and DynamoDB (default: us-east-1)
        AWS_S3_BUCKET_NAME: Bucket holding fragment content
        AWS_DYNAMODB_TABLE_NAME: Table holding fragment metadata
        AWS_S3_ENDPOINT_URL: Override S3 endpoint (local stacks)
        AWS_DYNAMODB_ENDPOINT_URL: Override DynamoDB endpoint (local stacks)
        FRAGMENTS_MAX_BODY_BYTES: Largest accepted body (default: 5 MiB)
        API_URL: Public base url used in fragment locations
    """
    def _bool(key: str, default: bool = False) -> bool:
        val = os.environ.get(key, "").lower()
        if val in ("1", "true", "yes"):
            return True
        if val in ("0", "false", "no"):
            return False
        return default

    backend = os.environ.get("FRAGMENTS_BACKEND", BACKEND_AUTO).lower()
    if backend not in (BACKEND_AUTO, BACKEND_MEMORY, BACKEND_AWS):
        raise ValueError(
            f"FRAGMENTS_BACKEND must be one of auto, memory, aws; got: {backend}"
        )

    return FragmentsSettings(
        log_level=os.environ.get("FRAGMENTS_LOG_LEVEL", "INFO").upper(),
        log_json=_bool("FRAGMENTS_LOG_JSON", True),
        backend=backend,
        aws_region=os.environ.get("AWS_REGION", "us-east-1"),
        s3_bucket=os.environ.get("AWS_S3_BUCKET_NAME", ""),
        dynamodb_table=os.environ.get("AWS_DYNAMODB_TABLE_NAME", ""),
        s3_endpoint_url=os.environ.get("AWS_S3_ENDPOINT_URL") or None,
        dynamodb_endpoint_url=os.environ.get("AWS_DYNAMODB_ENDPOINT_URL") or None,
        max_body_bytes=int(
            os.environ.get("FRAGMENTS_MAX_BODY_BYTES", str(DEFAULT_MAX_BODY_BYTES))
        ),
        api_url=os.environ.get("API_URL", "").rstrip("/"),
    )
