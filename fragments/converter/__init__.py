"""Format conversion for fragment content."""

from fragments.converter.engine import convert, handler_for

__all__ = [
    "convert",
    "handler_for",
]
