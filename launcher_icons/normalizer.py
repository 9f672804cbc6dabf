"""Image normalization: arbitrary icon bytes in, 32-bit RGBA PNG bytes out.

Pillow does the decoding. ICO, PNG, JPEG, BMP and GIF are recognized by the
generic decoder; some favicon services send ICO containers that the generic
path rejects, so a direct ICO container read is tried second.
"""

from __future__ import annotations

import logging
from io import BytesIO

from PIL import Image, IcoImagePlugin

from launcher_icons.exceptions import ImageDecodeError, is_critical

logger = logging.getLogger(__name__)


def decode_image(data: bytes) -> Image.Image:
    """Decode raw bytes into a fully loaded Pillow image.

    Args:
        data: Raw image bytes of unknown format.

    Returns:
        The decoded image (first frame for animated formats).

    Raises:
        ImageDecodeError: If the buffer is empty or no decoder accepts it.
    """
    if not data:
        raise ImageDecodeError("Empty image buffer")

    try:
        image = Image.open(BytesIO(data))
        image.load()
        return image
    except Exception as generic_error:
        if is_critical(generic_error):
            raise
        logger.debug("Generic decode failed, trying ICO container: %s", generic_error)

    try:
        ico = IcoImagePlugin.IcoFile(BytesIO(data))
        largest = max(ico.sizes(), key=lambda size: size[0] * size[1])
        image = ico.getimage(largest)
        image.load()
        return image
    except Exception as ico_error:
        if is_critical(ico_error):
            raise
        raise ImageDecodeError(
            "Unrecognized image data", details={"size": len(data), "error": str(ico_error)}
        ) from ico_error


def normalize_image(image: Image.Image) -> bytes:
    """Render ``image`` onto a transparent RGBA canvas and encode it as PNG."""
    canvas = Image.new("RGBA", image.size, (0, 0, 0, 0))
    canvas.alpha_composite(image.convert("RGBA"))

    buffer = BytesIO()
    canvas.save(buffer, format="PNG")
    return buffer.getvalue()


def normalize_bytes(data: bytes) -> bytes | None:
    """Decode and re-encode ``data`` as RGBA PNG.

    Returns:
        PNG bytes, or None when the data is empty or not a usable image.
    """
    if not data:
        return None

    try:
        return normalize_image(decode_image(data))
    except Exception as e:
        if is_critical(e):
            raise
        logger.debug("Image normalization failed: %s", e)
        return None
