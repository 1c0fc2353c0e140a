"""
Collaborator interface - the external image services the editor depends on.

One method per call type, so tests can swap in a deterministic double.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import numpy as np


class CollaboratorError(RuntimeError):
    """An external service failed or returned something unusable.

    The message is safe to show to the user.
    """


@dataclass
class SegmentationResult:
    """
    Raw segmentation output.

    Attributes:
        mask: Binary mask (h, w) at the model's inference resolution, covering
            the whole image (padding already removed)
        scale_x: Image pixels per mask column
        scale_y: Image pixels per mask row
        score: Model confidence, if reported
    """
    mask: np.ndarray
    scale_x: float = 1.0
    scale_y: float = 1.0
    score: float = 1.0


class ImageBackend(ABC):
    """Generation, editing and segmentation services."""

    @abstractmethod
    async def generate(self, prompt: str) -> bytes:
        """Generate an image from a text prompt. Returns encoded image bytes."""

    @abstractmethod
    async def extract_element(self, image: bytes, description: str) -> bytes:
        """Isolate the described element on a pure white background."""

    @abstractmethod
    async def remove_background(self, image: bytes) -> bytes:
        """Replace everything but the main subject with pure white."""

    @abstractmethod
    async def segment(
        self,
        image_rgba: np.ndarray,
        box_xyxy: list[float],
        image_id: Optional[str] = None,
    ) -> SegmentationResult:
        """Foreground mask for the object inside box_xyxy (image pixels).

        Calls sharing an image_id may reuse the image embedding.
        """

    async def close(self):
        """Release clients and models."""
