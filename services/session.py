"""
Editor sessions - one source image, its selection editor and extraction state.
"""

import asyncio
import logging
import uuid
from typing import Optional

from raster.codec import decode_image, encode_png
from selection.editor import PointerButton, SegmentationRequest, SelectionEditor
from selection.models import EditMode, Point
from selection.render import OverlayRenderer
from services.base import CollaboratorError, ImageBackend
from services.extraction import (
    ExtractionError,
    ExtractionOptions,
    ExtractionOrchestrator,
    ExtractionResult,
    rekey,
)
from services.smart_select import smart_select

logger = logging.getLogger(__name__)

SMART_SELECT_FAILED = "Smart selection failed. Try again or use Pen."
RETRY_HINT = "Please try again."


class EditorSession:
    """
    Everything the workspace needs for one image.

    Pointer and key handlers run synchronously on the event loop. Smart select
    is started as a background task from pointer_up(); extraction is awaited
    by the caller and never runs twice at once.
    """

    def __init__(
        self,
        image: bytes,
        backend: ImageBackend,
        session_id: Optional[str] = None,
        prompt: str = "Uploaded Image",
    ):
        """
        Args:
            image: Encoded source image
            backend: External collaborators
            session_id: Identifier, generated if omitted
            prompt: What produced the image (generation prompt or upload)

        Raises:
            ValueError: If the image cannot be decoded
        """
        self.id = session_id or uuid.uuid4().hex
        self.prompt = prompt
        self.source = decode_image(image)
        self.source_png = encode_png(self.source)
        self.height, self.width = self.source.shape[:2]

        self.backend = backend
        self.editor = SelectionEditor(image_size=(self.width, self.height))
        self.renderer = OverlayRenderer(self.width, self.height)
        self.extraction = ExtractionOrchestrator(backend)
        self.options = ExtractionOptions()

        self.result: Optional[ExtractionResult] = None
        self.error: Optional[str] = None
        self.error_retryable = False
        self._segment_task: Optional[asyncio.Task] = None
        # Bumped whenever the selection is abandoned; late extractions check it
        self._generation = 0

    # ==================== Input ====================

    def pointer_down(self, x: float, y: float, button: int = PointerButton.LEFT, shift: bool = False):
        self.editor.pointer_down(Point(x, y), button, shift)

    def pointer_move(self, x: float, y: float):
        self.editor.pointer_move(Point(x, y))

    def pointer_up(self, x: Optional[float] = None, y: Optional[float] = None) -> Optional[SegmentationRequest]:
        """
        Finish a gesture. A completed smart-select box starts segmentation
        in the background; the editor stays busy until it resolves.
        """
        screen = Point(x, y) if x is not None and y is not None else None
        request = self.editor.pointer_up(screen)
        if request is not None:
            self._segment_task = asyncio.create_task(self.run_segmentation(request))
        return request

    def handle_key(self, key: str, ctrl: bool = False, shift: bool = False, meta: bool = False) -> bool:
        return self.editor.handle_key(key, ctrl=ctrl, shift=shift, meta=meta)

    def set_mode(self, mode: EditMode):
        leaving_selection = self.editor.mode != EditMode.TEXT
        self.editor.set_mode(mode)
        if leaving_selection and self.editor.mode == EditMode.TEXT:
            self._generation += 1

    def reset(self):
        """Drop the shape and any extraction result."""
        self.editor.reset_shape()
        self._generation += 1
        self.result = None
        self.error = None

    # ==================== Smart Select ====================

    async def run_segmentation(self, request: SegmentationRequest) -> bool:
        """
        Resolve a smart-select request and hand the outline to the editor.

        Returns:
            True if the polygon was applied
        """
        try:
            points, fallback = await smart_select(self.backend, self.source, request.xyxy, image_id=self.id)
        except Exception:
            logger.exception(f"Smart select crashed for session {self.id}")
            self.editor.fail_segmentation(request, SMART_SELECT_FAILED)
            return False

        if fallback:
            logger.info(f"Session {self.id}: using box fallback for {request.xyxy}")
        return self.editor.complete_segmentation(request, points)

    async def wait_for_segmentation(self):
        """Await the in-flight smart-select task, if any."""
        task = self._segment_task
        if task is not None:
            await task

    # ==================== Extraction ====================

    async def extract(
        self,
        prompt: Optional[str] = None,
        options: Optional[ExtractionOptions] = None,
    ) -> Optional[ExtractionResult]:
        """
        Run an extraction for the current mode.

        TEXT mode extracts by prompt; geometric modes cut out the closed
        polygon. On rejection or collaborator failure the error message is
        stored on the session and the previous result is left as it was. A result
        that arrives after reset() or a switch to TEXT mode is dropped.

        Returns:
            The new result, or None on failure or when it was dropped
        """
        if options is not None:
            self.options = options
        self.error = None
        self.error_retryable = False
        generation = self._generation

        try:
            if self.editor.mode == EditMode.TEXT:
                result = await self.extraction.extract_prompt(self.source, prompt or "", self.options)
            else:
                result = await self.extraction.extract_polygon(self.source, self.editor.polygon, self.options)
        except ExtractionError as e:
            self.error = str(e)
            return None
        except CollaboratorError as e:
            logger.error(f"Extraction failed for session {self.id}: {e}")
            if generation != self._generation:
                return None
            self.error = f"{e} {RETRY_HINT}"
            self.error_retryable = True
            return None

        if generation != self._generation:
            logger.info(f"Session {self.id}: selection changed during extraction, dropping result")
            return None

        self.result = result
        return result

    def rekey(
        self,
        tolerance: Optional[float] = None,
        softness: Optional[float] = None,
        remove_white: Optional[bool] = None,
    ) -> Optional[ExtractionResult]:
        """Change keying settings and recompute the processed result."""
        if tolerance is not None:
            self.options.tolerance = tolerance
        if softness is not None:
            self.options.softness = softness
        if self.result is not None:
            self.result = rekey(self.result, tolerance, softness, remove_white)
        return self.result

    # ==================== Output ====================

    def overlay_png(self) -> bytes:
        return encode_png(self.renderer.render(self.editor))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "prompt": self.prompt,
            "width": self.width,
            "height": self.height,
            "editor": self.editor.to_dict(),
            "options": {
                "use_ai_background_removal": self.options.use_ai_background_removal,
                "keep_original_size": self.options.keep_original_size,
                "tolerance": self.options.tolerance,
                "softness": self.options.softness,
            },
            "extracting": self.extraction.busy,
            "has_result": self.result is not None,
            "remove_white": self.result.remove_white if self.result else None,
            "error": self.error,
        }


class SessionRegistry:
    """In-memory sessions by id."""

    def __init__(self):
        self._sessions: dict[str, EditorSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, image: bytes, backend: ImageBackend, prompt: str = "Uploaded Image") -> EditorSession:
        session = EditorSession(image, backend, prompt=prompt)
        self._sessions[session.id] = session
        logger.info(f"Created session {session.id} ({session.width}x{session.height})")
        return session

    def get(self, session_id: str) -> Optional[EditorSession]:
        return self._sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None
