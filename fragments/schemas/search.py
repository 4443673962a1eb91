"""SearchCriteria — metadata filters for listing an owner's fragments."""

from datetime import date, datetime, time, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Fragments whose updated timestamp is within this many seconds of
# created were never modified after the create call.
MODIFIED_THRESHOLD_SECONDS = 2.0


class SearchCriteria(BaseModel):
    """Filters applied to an owner's fragments. All filters are optional.

    Date filters take whole days (UTC): ``before`` includes the entire
    named day, ``after`` and ``modified`` start at its midnight.
    """

    model_config = ConfigDict(frozen=True)

    type: Optional[str] = Field(default=None, description="Substring of the fragment type")
    before: Optional[date] = Field(default=None, description="Created on or before this day")
    after: Optional[date] = Field(default=None, description="Created on or after this day")
    modified: Optional[date] = Field(default=None, description="Modified on or after this day")
    min_size: Optional[int] = Field(default=None, ge=0)
    max_size: Optional[int] = Field(default=None, ge=0)
    expand: bool = Field(default=False, description="Return full metadata instead of ids")

    @model_validator(mode="after")
    def size_bounds_ordered(self) -> "SearchCriteria":
        if (
            self.min_size is not None
            and self.max_size is not None
            and self.min_size > self.max_size
        ):
            raise ValueError(
                f"min_size ({self.min_size}) cannot exceed max_size ({self.max_size})"
            )
        return self

    def before_cutoff(self) -> datetime | None:
        if self.before is None:
            return None
        return datetime.combine(self.before, time.max, tzinfo=timezone.utc)

    def after_cutoff(self) -> datetime | None:
        if self.after is None:
            return None
        return datetime.combine(self.after, time.min, tzinfo=timezone.utc)

    def modified_cutoff(self) -> datetime | None:
        if self.modified is None:
            return None
        return datetime.combine(self.modified, time.min, tzinfo=timezone.utc)
