"""Sample owners and payloads shared by unit and integration tests."""

import io
from datetime import datetime, timezone

from PIL import Image

OWNER = "user1@email.com"
OTHER_OWNER = "user2@email.com"

SAMPLE_TIMESTAMP = datetime(2026, 2, 9, 14, 30, 0, tzinfo=timezone.utc)

SAMPLE_MARKDOWN = b"# Title\n\nSome **bold** text.\n"
SAMPLE_JSON = b'{"name": "Alice", "age": 30, "tags": ["a", "b"]}'
SAMPLE_YAML = b"name: Alice\nage: 30\n"
SAMPLE_CSV = b"name,age\nAlice,30\nBob,25\n"
SAMPLE_HTML = b"<html><body><h1>Hi</h1>\n<p>there   friend</p></body></html>"


def make_image(fmt: str = "PNG", mode: str = "RGB", size: tuple[int, int] = (4, 3)) -> bytes:
    """Encode a small solid-color image with Pillow."""
    if mode == "L":
        color = 128
    elif mode == "RGBA":
        color = (255, 0, 0, 128)
    elif mode == "CMYK":
        color = (0, 255, 255, 0)
    else:
        color = (255, 0, 0)
    img = Image.new(mode, size, color)
    out = io.BytesIO()
    img.save(out, format=fmt)
    return out.getvalue()
