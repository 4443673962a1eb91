"""Shared enumerations for Fragments schemas.

Defined here to keep the converter, the format registry and the
entities free of circular imports.
"""

from enum import Enum


class ContentFamily(str, Enum):
    """Converter variant for a supported base MIME type.

    Every supported source type maps to exactly one family; adding a
    new type means adding a member here and a handler in the converter.
    """
    PLAIN = "PLAIN"
    MARKDOWN = "MARKDOWN"
    HTML = "HTML"
    CSV = "CSV"
    JSON = "JSON"
    YAML = "YAML"
    IMAGE = "IMAGE"
