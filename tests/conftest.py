"""
Shared fixtures - a deterministic stand-in for the external image services.
"""

import numpy as np
import pytest

from raster.codec import decode_image, encode_png
from services.base import CollaboratorError, ImageBackend, SegmentationResult


def solid_image(width: int, height: int, color=(200, 40, 40, 255)) -> np.ndarray:
    image = np.zeros((height, width, 4), dtype=np.uint8)
    image[...] = color
    return image


class FakeImageBackend(ImageBackend):
    """
    Records calls and answers from canned data.

    remove_background() paints every fully-opaque pixel in the outer border
    white, so alpha keying has something to remove.
    """

    def __init__(self, mask: np.ndarray = None, fail: set = None):
        self.mask = mask
        self.fail = fail or set()
        self.calls = []
        self.image_ids = []
        self.closed = False

    def _check(self, name: str):
        self.calls.append(name)
        if name in self.fail:
            raise CollaboratorError(f"{name} unavailable")

    async def generate(self, prompt: str) -> bytes:
        self._check("generate")
        return encode_png(solid_image(64, 48))

    async def extract_element(self, image: bytes, description: str) -> bytes:
        self._check("extract_element")
        rgba = decode_image(image)
        out = np.full_like(rgba, 255)
        out[10:20, 10:20] = (0, 0, 0, 255)
        return encode_png(out)

    async def remove_background(self, image: bytes) -> bytes:
        self._check("remove_background")
        rgba = decode_image(image)
        out = rgba.copy()
        out[0, :] = (255, 255, 255, 255)
        return encode_png(out)

    async def segment(self, image_rgba: np.ndarray, box_xyxy: list[float], image_id: str = None) -> SegmentationResult:
        self._check("segment")
        self.image_ids.append(image_id)
        if self.mask is not None:
            return SegmentationResult(mask=self.mask)
        height, width = image_rgba.shape[:2]
        mask = np.zeros((height, width), dtype=np.uint8)
        x1, y1, x2, y2 = (int(v) for v in box_xyxy)
        mask[y1 + 2:y2 - 2, x1 + 2:x2 - 2] = 1
        return SegmentationResult(mask=mask, score=0.9)

    async def close(self):
        self.closed = True


@pytest.fixture
def backend():
    return FakeImageBackend()


@pytest.fixture
def source_png():
    """100x80 opaque image, left half red and right half blue."""
    image = solid_image(100, 80)
    image[:, 50:] = (30, 30, 220, 255)
    return encode_png(image)
