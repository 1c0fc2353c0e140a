"""
Default ImageBackend - remote image API plus local SAM segmentation.
"""

import asyncio
import logging
from typing import Optional

import numpy as np

from services.base import CollaboratorError, ImageBackend, SegmentationResult
from services.imagegen import ImageGeneratorClient
from services.segment import SegmentService, get_segment_service

logger = logging.getLogger(__name__)


class DefaultImageBackend(ImageBackend):
    """
    Routes generation/editing to the image API and segmentation to SAM.

    The image client is created lazily so the editor works without an API
    key as long as only segmentation is used.
    """

    def __init__(
        self,
        api_key: str = "",
        base_url: Optional[str] = None,
        model: str = "gemini-2.5-flash-image",
        segment_service: Optional[SegmentService] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url
        self._model = model
        self._client: Optional[ImageGeneratorClient] = None
        self._segment_service = segment_service

    @property
    def client(self) -> ImageGeneratorClient:
        if self._client is None:
            try:
                self._client = ImageGeneratorClient(self._api_key, self._base_url, self._model)
            except RuntimeError as e:
                raise CollaboratorError(str(e)) from e
        return self._client

    @property
    def segment_service(self) -> SegmentService:
        if self._segment_service is None:
            self._segment_service = get_segment_service()
        return self._segment_service

    async def generate(self, prompt: str) -> bytes:
        return await self.client.generate(prompt)

    async def extract_element(self, image: bytes, description: str) -> bytes:
        return await self.client.extract_element(image, description)

    async def remove_background(self, image: bytes) -> bytes:
        return await self.client.remove_background(image)

    async def segment(
        self,
        image_rgba: np.ndarray,
        box_xyxy: list[float],
        image_id: Optional[str] = None,
    ) -> SegmentationResult:
        # Model inference blocks; keep it off the event loop
        try:
            return await asyncio.to_thread(self.segment_service.segment, image_rgba, box_xyxy, image_id)
        except Exception as e:
            logger.error(f"Segmentation failed: {e}")
            raise CollaboratorError(f"Segmentation failed: {e}") from e

    async def close(self):
        if self._client is not None:
            await self._client.close()
            self._client = None
