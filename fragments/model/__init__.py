"""Fragments domain model."""

from fragments.model.fragment import Fragment

__all__ = ["Fragment"]
