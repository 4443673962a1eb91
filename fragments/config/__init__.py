"""Fragments configuration — environment-based settings."""

from fragments.config.settings import FragmentsSettings, get_settings

__all__ = [
    "FragmentsSettings",
    "get_settings",
]
