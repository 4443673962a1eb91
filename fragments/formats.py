"""Format Registry — supported fragment types and their conversion targets.

Maps each supported base MIME type to the file extensions its content
can be converted to, maps extensions back to canonical MIME types, and
assigns every supported type to a converter ContentFamily.

Usage:
    from fragments.formats import is_supported_type, supported_formats
    is_supported_type("text/plain; charset=utf-8")   # True
    supported_formats("text/markdown")               # ["md", "html", "txt"]
"""

from __future__ import annotations

import re

import structlog

from fragments.schemas.enums import ContentFamily

logger = structlog.get_logger()

DEFAULT_MIME_TYPE = "application/octet-stream"

IMAGE_EXTENSIONS: tuple[str, ...] = ("png", "jpg", "jpeg", "webp", "gif", "avif")

# ---------------------------------------------------------------------------
# Base type → convertible extensions
# ---------------------------------------------------------------------------

_FORMATS: dict[str, tuple[str, ...]] = {
    "text/plain": ("txt",),
    "text/markdown": ("md", "html", "txt"),
    "text/html": ("html", "txt"),
    "text/csv": ("csv", "txt", "json"),
    "application/json": ("json", "txt", "yaml", "yml"),
    "application/yaml": ("yaml", "yml", "json", "txt"),
    "image/png": IMAGE_EXTENSIONS,
    "image/jpeg": IMAGE_EXTENSIONS,
    "image/webp": IMAGE_EXTENSIONS,
    "image/gif": IMAGE_EXTENSIONS,
    "image/avif": IMAGE_EXTENSIONS,
}

_FAMILIES: dict[str, ContentFamily] = {
    "text/plain": ContentFamily.PLAIN,
    "text/markdown": ContentFamily.MARKDOWN,
    "text/html": ContentFamily.HTML,
    "text/csv": ContentFamily.CSV,
    "application/json": ContentFamily.JSON,
    "application/yaml": ContentFamily.YAML,
    "image/png": ContentFamily.IMAGE,
    "image/jpeg": ContentFamily.IMAGE,
    "image/webp": ContentFamily.IMAGE,
    "image/gif": ContentFamily.IMAGE,
    "image/avif": ContentFamily.IMAGE,
}

_MIME_TYPES: dict[str, str] = {
    # Text formats
    "txt": "text/plain",
    "md": "text/markdown",
    "html": "text/html",
    "csv": "text/csv",
    # Data formats
    "json": "application/json",
    "yaml": "application/yaml",
    "yml": "application/yaml",
    # Image formats
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "avif": "image/avif",
    "gif": "image/gif",
}

SUPPORTED_TYPES: frozenset[str] = frozenset(_FORMATS)

# ---------------------------------------------------------------------------
# Media type grammar (RFC 7231 section 3.1.1.1)
# ---------------------------------------------------------------------------

_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_QUOTED_STRING = r'"(?:[^"\\]|\\.)*"'
_TYPE_RE = re.compile(rf"^\s*({_TOKEN}/{_TOKEN})\s*(.*)$", re.DOTALL)
_PARAM_RE = re.compile(rf";\s*({_TOKEN})\s*=\s*({_TOKEN}|{_QUOTED_STRING})\s*")
_QUOTED_PAIR_RE = re.compile(r"\\(.)")


def parse_media_type(value: str) -> tuple[str, dict[str, str]]:
    """Parse a Content-Type value into its base type and parameters.

    Parameter names are lower-cased; quoted values are unquoted. The base
    type keeps its original case.

    Raises:
        ValueError: if the value does not follow the media-type grammar.
    """
    if not isinstance(value, str):
        raise ValueError(f"media type must be a string, got {type(value).__name__}")

    match = _TYPE_RE.match(value)
    if match is None:
        raise ValueError(f"invalid media type: {value!r}")

    base, rest = match.group(1), match.group(2)
    params: dict[str, str] = {}
    pos = 0
    while pos < len(rest):
        param = _PARAM_RE.match(rest, pos)
        if param is None:
            raise ValueError(f"invalid parameter format in media type: {value!r}")
        name, raw = param.group(1).lower(), param.group(2)
        if raw.startswith('"'):
            raw = _QUOTED_PAIR_RE.sub(r"\1", raw[1:-1])
        params[name] = raw
        pos = param.end()

    return base, params


def strip_parameters(value: str) -> str:
    """Drop everything after the first ';' (lenient, never raises)."""
    return value.split(";", 1)[0].strip()


def is_supported_type(value: object) -> bool:
    """Whether a Content-Type names a supported fragment type.

    Always returns a boolean: malformed or non-string values are simply
    unsupported.
    """
    try:
        base, _ = parse_media_type(value)  # type: ignore[arg-type]
    except ValueError as exc:
        logger.warning("Invalid content type format", content_type=repr(value), error=str(exc))
        return False

    supported = base in SUPPORTED_TYPES
    if not supported:
        logger.warning("Unsupported content type", content_type=base)
    return supported


def supported_formats(base_type: str) -> list[str]:
    """Extensions a fragment of this base type may be converted to."""
    return list(_FORMATS.get(base_type, ()))


def family_for(base_type: str) -> ContentFamily | None:
    """The converter variant handling this base type, if any."""
    return _FAMILIES.get(base_type)


def normalize_extension(extension: str) -> str:
    """Lower-case an extension and strip a leading dot."""
    return extension.strip().lstrip(".").lower()


def mime_type_for(extension: str) -> str:
    """Canonical MIME type for an extension, octet-stream when unknown."""
    return _MIME_TYPES.get(normalize_extension(extension), DEFAULT_MIME_TYPE)
