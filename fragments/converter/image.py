"""Image re-encoding with Pillow.

Every supported image type converts to every other. Requesting the
source's own type returns the original bytes without decoding.
"""

from __future__ import annotations

import io

from PIL import Image

from fragments.formats import mime_type_for

_PIL_FORMATS: dict[str, str] = {
    "png": "PNG",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "webp": "WEBP",
    "gif": "GIF",
    "avif": "AVIF",
}

# Modes each encoder stores as-is; other modes are converted first
_ENCODER_MODES: dict[str, tuple[str, ...]] = {
    "JPEG": ("RGB", "L", "CMYK"),
    "PNG": ("RGB", "RGBA", "L", "LA", "P", "1", "I", "I;16"),
    "GIF": ("P", "L", "RGB", "RGBA"),
    "WEBP": ("RGB", "RGBA"),
    "AVIF": ("RGB", "RGBA"),
}


def _encodable(img: Image.Image, pil_format: str) -> Image.Image:
    """Convert ``img`` to a mode ``pil_format`` can write.

    Alpha survives unless the target is JPEG, which is flattened to RGB.
    """
    if img.mode in _ENCODER_MODES[pil_format]:
        return img
    has_alpha = img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info
    if has_alpha and pil_format != "JPEG":
        return img.convert("RGBA")
    return img.convert("RGB")


def convert_image(data: bytes, target: str, source_type: str) -> bytes:
    """Decode ``data`` and encode it in the codec named by ``target``.

    Unmapped extensions fall back to PNG.
    """
    if mime_type_for(target) == source_type:
        return data

    pil_format = _PIL_FORMATS.get(target, "PNG")

    with Image.open(io.BytesIO(data)) as img:
        img.load()
        frame = _encodable(img, pil_format)

        out = io.BytesIO()
        frame.save(out, format=pil_format)
        return out.getvalue()
