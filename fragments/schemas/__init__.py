"""Fragments schemas — typed records shared by the model and services."""

from fragments.schemas.enums import ContentFamily
from fragments.schemas.search import SearchCriteria
from fragments.schemas.version import (
    FragmentVersion,
    VersionRef,
    parse_version_id,
    to_version_id,
)

__all__ = [
    "ContentFamily",
    "FragmentVersion",
    "SearchCriteria",
    "VersionRef",
    "parse_version_id",
    "to_version_id",
]
