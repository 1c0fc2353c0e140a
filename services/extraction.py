"""
Extraction orchestrator - clip, clean up and key out a selected region.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from raster.codec import decode_image, encode_png
from raster.compositor import DEFAULT_SOFTNESS, DEFAULT_TOLERANCE, key_out_color
from raster.extract import clip_to_polygon, place_on_canvas
from selection.models import Polygon
from services.base import CollaboratorError, ImageBackend

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """A request rejected before any collaborator call. Message is user-facing."""


@dataclass
class ExtractionOptions:
    """User settings for an extraction run."""
    use_ai_background_removal: bool = True
    keep_original_size: bool = True
    tolerance: float = DEFAULT_TOLERANCE
    softness: float = DEFAULT_SOFTNESS


@dataclass
class ExtractionResult:
    """
    Output of one extraction.

    Attributes:
        extracted: Raster before alpha keying
        processed: Raster shown to the user (keyed when remove_white)
        remove_white: Whether keying is applied
        rect: (x1, y1, x2, y2) of the crop in the source, None for prompt mode
    """
    extracted: np.ndarray
    processed: np.ndarray
    remove_white: bool
    tolerance: float = DEFAULT_TOLERANCE
    softness: float = DEFAULT_SOFTNESS
    rect: Optional[tuple[int, int, int, int]] = None
    _png: Optional[bytes] = field(default=None, repr=False, compare=False)

    @property
    def png(self) -> bytes:
        """processed as PNG."""
        if self._png is None:
            self._png = encode_png(self.processed)
        return self._png


def finish(
    extracted: np.ndarray,
    remove_white: bool,
    tolerance: float,
    softness: float,
    rect: Optional[tuple[int, int, int, int]] = None,
) -> ExtractionResult:
    """Apply (or skip) alpha keying and package the result."""
    processed = key_out_color(extracted, tolerance, softness) if remove_white else extracted
    return ExtractionResult(
        extracted=extracted,
        processed=processed,
        remove_white=remove_white,
        tolerance=tolerance,
        softness=softness,
        rect=rect,
    )


def rekey(
    result: ExtractionResult,
    tolerance: Optional[float] = None,
    softness: Optional[float] = None,
    remove_white: Optional[bool] = None,
) -> ExtractionResult:
    """Recompute keying on an existing result without calling any collaborator."""
    return finish(
        result.extracted,
        result.remove_white if remove_white is None else remove_white,
        result.tolerance if tolerance is None else tolerance,
        result.softness if softness is None else softness,
        result.rect,
    )


def _decode_response(data: bytes, what: str) -> np.ndarray:
    try:
        return decode_image(data)
    except ValueError as e:
        raise CollaboratorError(f"{what} returned an unreadable image") from e


class ExtractionOrchestrator:
    """
    Runs one extraction at a time for a session.

    A request arriving while another is running is rejected, never interleaved.
    """

    def __init__(self, backend: ImageBackend):
        self.backend = backend
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def _check_idle(self):
        if self._lock.locked():
            raise ExtractionError("An extraction is already in progress.")

    async def extract_polygon(
        self,
        source: np.ndarray,
        polygon: Optional[Polygon],
        options: ExtractionOptions,
    ) -> ExtractionResult:
        """
        Cut the polygon out of the source raster.

        Steps: clip to the polygon's box, optionally replace the crop with the
        background-removal response, optionally paste it back at full canvas
        size, then key out white if the background was replaced.

        Raises:
            ExtractionError: No closed polygon, or another extraction running
            CollaboratorError: Background removal failed; nothing is returned
        """
        if polygon is None or not polygon.closed:
            raise ExtractionError("Please select an area first.")
        self._check_idle()

        async with self._lock:
            try:
                crop, rect = clip_to_polygon(source, polygon)
            except ValueError as e:
                raise ExtractionError(str(e)) from e

            logger.info(f"Extracting region {rect} (ai={options.use_ai_background_removal})")

            remove_white = False
            if options.use_ai_background_removal:
                response = await self.backend.remove_background(encode_png(crop))
                crop = _decode_response(response, "Background removal")
                remove_white = True

            if options.keep_original_size:
                height, width = source.shape[:2]
                crop = place_on_canvas(crop, rect, (width, height))

            return finish(crop, remove_white, options.tolerance, options.softness, rect)

    async def extract_prompt(
        self,
        source: np.ndarray,
        prompt: str,
        options: ExtractionOptions,
    ) -> ExtractionResult:
        """
        Ask the collaborator to isolate a described element, then key out white.

        Raises:
            ExtractionError: Empty prompt, or another extraction running
            CollaboratorError: The collaborator failed
        """
        prompt = (prompt or "").strip()
        if not prompt:
            raise ExtractionError("Describe what should be extracted.")
        self._check_idle()

        async with self._lock:
            logger.info(f"Extracting element by prompt: {prompt!r}")
            response = await self.backend.extract_element(encode_png(source), prompt)
            extracted = _decode_response(response, "Element extraction")
            return finish(extracted, True, options.tolerance, options.softness)

