"""
Image codec helpers - encoded payloads <-> RGBA pixel buffers.
"""

import base64
import io
import re

import numpy as np
from PIL import Image, UnidentifiedImageError

_DATA_URL_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,")


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode an encoded image (PNG, JPEG, ...) to an RGBA array.

    Args:
        data: Encoded image bytes

    Returns:
        (H, W, 4) uint8 array

    Raises:
        ValueError: If the bytes are not a readable image
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            return np.array(img.convert("RGBA"))
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Could not decode image: {e}") from e


def encode_png(rgba: np.ndarray) -> bytes:
    """Encode an RGBA (or RGB) array as PNG bytes."""
    buffer = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(rgba, dtype=np.uint8)).save(buffer, format="PNG")
    return buffer.getvalue()


def b64decode_image(data: str) -> bytes:
    """Decode base64 image data, with or without a data-URL prefix."""
    return base64.b64decode(_DATA_URL_PREFIX.sub("", data.strip()))


def b64encode_image(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def resize_rgba(rgba: np.ndarray, size: tuple[int, int]) -> np.ndarray:
    """
    Resample an RGBA array to (width, height).
    """
    width, height = size
    if rgba.shape[1] == width and rgba.shape[0] == height:
        return rgba
    img = Image.fromarray(np.ascontiguousarray(rgba, dtype=np.uint8)).resize((width, height), Image.Resampling.LANCZOS)
    return np.array(img)
