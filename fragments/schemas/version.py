"""FragmentVersion schema — an immutable snapshot of a fragment's content.

Version ids are part of the wire contract: ``<fragmentId>_v<versionNum>``.
Any externally supplied id must go through parse_version_id before it is
trusted as belonging to a fragment.

Immutability Rules:
- Versions are append-only. Once written, they are never modified.
- Version numbers start at 1 and grow by one per snapshot.
- Restoring an old version never deletes the versions after it.
"""

from datetime import datetime, timezone
from typing import NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, model_validator

from fragments.exceptions import VersionIdFormatError, VersionNumberError

VERSION_SEPARATOR = "_v"


class VersionRef(NamedTuple):
    """The two halves of a parsed version id."""

    fragment_id: str
    version_num: int


def to_version_id(fragment_id: str, version_num: int) -> str:
    """Build the composite id for a fragment's Nth version."""
    return f"{fragment_id}{VERSION_SEPARATOR}{version_num}"


def parse_version_id(version_id: str) -> VersionRef:
    """Split a version id into its fragment id and version number.

    Raises:
        VersionIdFormatError: the id does not contain exactly one ``_v``.
        VersionNumberError: the suffix is not a positive integer.
    """
    if not isinstance(version_id, str):
        raise VersionIdFormatError(f"Invalid version ID format: {version_id!r}")

    parts = version_id.split(VERSION_SEPARATOR)
    if len(parts) != 2 or not parts[0]:
        raise VersionIdFormatError(f"Invalid version ID format: {version_id}")

    fragment_id, suffix = parts
    if not (suffix.isascii() and suffix.isdigit()) or int(suffix) < 1:
        raise VersionNumberError(
            f"Invalid version number in version ID: {version_id}",
            fragment_id=fragment_id,
        )

    return VersionRef(fragment_id=fragment_id, version_num=int(suffix))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FragmentVersion(BaseModel):
    """Metadata for one historical snapshot of a fragment.

    type and size are copied from the fragment at snapshot time.
    Immutable after creation (frozen=True).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default="", description="Composite id, derived when empty")
    fragment_id: str = Field(..., alias="fragmentId", min_length=1)
    owner_id: str = Field(..., alias="ownerId", min_length=1)
    created: datetime = Field(default_factory=_utcnow)
    updated: Optional[datetime] = Field(default=None)
    type: str = Field(..., min_length=1, description="Fragment type at snapshot time")
    size: StrictInt = Field(default=0, ge=0, description="Content size in bytes")
    version_num: StrictInt = Field(..., alias="versionNum", gt=0)

    @model_validator(mode="after")
    def fill_derived_fields(self) -> "FragmentVersion":
        """Derive the composite id and default updated to created."""
        # Use object.__setattr__ because model is frozen
        if not self.id:
            object.__setattr__(self, "id", to_version_id(self.fragment_id, self.version_num))
        if self.updated is None:
            object.__setattr__(self, "updated", self.created)
        return self

    def to_record(self) -> str:
        """Serialize to the JSON text stored by the metadata adapters."""
        return self.model_dump_json(by_alias=True)
