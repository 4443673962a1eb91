"""Converter Engine — turns stored fragment bytes into another format.

Dispatch is a single table keyed by ContentFamily. Handlers are plain
synchronous functions; convert() runs them in a worker thread so large
markdown, YAML or image payloads never block the event loop.

Usage:
    data = await convert(raw, "text/markdown", "html")
"""

from __future__ import annotations

import asyncio
from typing import Callable

import structlog

from fragments.converter.image import convert_image
from fragments.converter.structured import convert_json, convert_yaml
from fragments.converter.text import convert_csv, convert_html, convert_markdown
from fragments.exceptions import ConversionError
from fragments.formats import family_for, normalize_extension, strip_parameters
from fragments.schemas.enums import ContentFamily

logger = structlog.get_logger()

Handler = Callable[[bytes, str, str], bytes]


def _passthrough(data: bytes, target: str, source_type: str) -> bytes:
    return data


_HANDLERS: dict[ContentFamily, Handler] = {
    ContentFamily.PLAIN: _passthrough,
    ContentFamily.MARKDOWN: convert_markdown,
    ContentFamily.HTML: convert_html,
    ContentFamily.CSV: convert_csv,
    ContentFamily.JSON: convert_json,
    ContentFamily.YAML: convert_yaml,
    ContentFamily.IMAGE: convert_image,
}


def handler_for(source_type: str) -> Handler | None:
    """Return the handler for a source type, ignoring its parameters."""
    family = family_for(strip_parameters(source_type))
    if family is None:
        return None
    return _HANDLERS[family]


async def convert(
    data: bytes,
    source_type: str,
    target_extension: str,
    fragment_id: str | None = None,
) -> bytes:
    """Convert ``data`` of ``source_type`` into ``target_extension``.

    Unknown source types are returned unchanged.

    Raises:
        ConversionError: wrapping any parse, decode or encode failure.
    """
    base_type = strip_parameters(source_type)
    target = normalize_extension(target_extension)
    handler = handler_for(base_type)

    logger.debug(
        "Converting data",
        source_type=base_type,
        target=target,
        size=len(data),
    )

    if handler is None:
        return data

    try:
        return await asyncio.to_thread(handler, data, target, base_type)
    except Exception as exc:
        logger.error(
            "Error converting data",
            source_type=base_type,
            target=target,
            error=str(exc),
        )
        raise ConversionError(
            f"Conversion error: {exc}",
            fragment_id=fragment_id,
            source_type=base_type,
            target=target,
        ) from exc
