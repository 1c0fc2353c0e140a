"""
Hit-testing and edit engine for the selection workspace.

SelectionEditor is the single owner of the viewport, the current polygon, its
undo/redo history and all drag state. Pointer events arrive in screen
coordinates and are mapped to image space through the viewport.

Every geometry change is preceded by exactly one history push of the
pre-edit polygon; a drag gesture pushes once at pointer-down, never per move.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from selection.geometry import distance, point_in_polygon
from selection.history import EditHistory
from selection.models import EditMode, Point, Polygon, SelectionBox
from selection.viewport import Viewport

logger = logging.getLogger(__name__)

# Handle radius and extra grab slack, in screen pixels
POINT_RADIUS = 6.0
HIT_SLACK = 4.0

# Smaller box drags are treated as accidental clicks
MIN_BOX_SIZE = 5.0


class PointerButton(IntEnum):
    LEFT = 0
    MIDDLE = 1
    RIGHT = 2


@dataclass(frozen=True)
class SegmentationRequest:
    """A box handed to the segmentation collaborator.

    The token ties the eventual answer to the gesture that asked for it.
    """
    token: int
    box: SelectionBox

    @property
    def xyxy(self) -> list[float]:
        return self.box.xyxy


class SelectionEditor:
    """
    Pen and smart-box selection state machine.

    Modes:
        TEXT: no geometry; pointer drags pan the view
        SMART: drag a box, then hand it to segmentation
        DRAW: click to add vertices, drag vertices or the whole closed shape
    """

    def __init__(
        self,
        image_size: Optional[tuple[int, int]] = None,
        viewport: Optional[Viewport] = None,
        mode: EditMode = EditMode.TEXT,
    ):
        self.image_size = image_size
        self.viewport = viewport or Viewport()
        self.history = EditHistory()

        self._mode = EditMode(mode)
        self._polygon: Optional[Polygon] = None
        self._selection_box: Optional[SelectionBox] = None

        # Drag sessions
        self._drag_index: Optional[int] = None
        self._shape_drag_last: Optional[Point] = None
        self._box_anchor: Optional[Point] = None
        self._pan_last: Optional[Point] = None

        # Smart select
        self._next_token = 0
        self._pending: Optional[SegmentationRequest] = None

        self.hovered_index: Optional[int] = None
        self.polygon_hovered = False
        self.error: Optional[str] = None
        self.dirty = True

    # ==================== State ====================

    @property
    def mode(self) -> EditMode:
        return self._mode

    @property
    def polygon(self) -> Optional[Polygon]:
        return self._polygon

    @property
    def selection_box(self) -> Optional[SelectionBox]:
        return self._selection_box

    @property
    def busy(self) -> bool:
        """True while a segmentation call is in flight."""
        return self._pending is not None

    @property
    def is_panning(self) -> bool:
        return self._pan_last is not None

    @property
    def is_dragging(self) -> bool:
        return self._drag_index is not None or self._shape_drag_last is not None

    @property
    def hit_radius(self) -> float:
        """Grab radius in image pixels; constant on screen at any zoom."""
        return (POINT_RADIUS + HIT_SLACK) / self.viewport.scale

    @property
    def has_closed_polygon(self) -> bool:
        return self._polygon is not None and self._polygon.closed

    @property
    def status(self) -> Optional[str]:
        if self.busy:
            return "Analyzing..."
        if self._polygon is None:
            return None
        return "Shape Closed" if self._polygon.closed else "Drawing..."

    def _set_polygon(self, polygon: Optional[Polygon]):
        self._polygon = polygon
        self.dirty = True

    def _push_history(self):
        self.history.push(self._polygon)

    def _end_drags(self):
        self._drag_index = None
        self._shape_drag_last = None

    # ==================== Mode ====================

    def set_mode(self, mode: EditMode):
        """
        Switch input mode.

        Leaving geometric selection for TEXT abandons the polygon, the box,
        the history and any in-flight segmentation result. Any other switch away
        from SMART drops the box being dragged.
        """
        mode = EditMode(mode)
        if mode != EditMode.SMART:
            self._selection_box = None
            self._box_anchor = None
        if mode == EditMode.TEXT:
            self._set_polygon(None)
            self._pending = None
            self.history.clear()
        self._end_drags()
        self._mode = mode
        self.dirty = True

    # ==================== Pointer Events ====================

    def pointer_down(self, screen: Point, button: int = PointerButton.LEFT, shift: bool = False):
        """Handle a pointer press at a screen position."""
        if button == PointerButton.MIDDLE or shift or self._mode == EditMode.TEXT:
            self._pan_last = screen
            return

        pos = self.viewport.to_image_space(screen)

        if self._mode == EditMode.SMART:
            self._start_box(pos)
        elif self._mode == EditMode.DRAW:
            self._pen_down(pos)

    def pointer_move(self, screen: Point):
        """Handle pointer motion at a screen position."""
        if self._pan_last is not None:
            self.viewport.pan(screen.x - self._pan_last.x, screen.y - self._pan_last.y)
            self._pan_last = screen
            self.dirty = True
            return

        pos = self.viewport.to_image_space(screen)

        if self._mode == EditMode.SMART and self._box_anchor is not None:
            self._selection_box = SelectionBox.from_corners(self._box_anchor, pos)
            self.dirty = True
            return

        if self._mode == EditMode.DRAW:
            self._update_hover(pos)

            if self._drag_index is not None and self._polygon is not None:
                self._set_polygon(self._polygon.with_vertex(self._drag_index, pos))
            elif self._shape_drag_last is not None and self._polygon is not None:
                dx = pos.x - self._shape_drag_last.x
                dy = pos.y - self._shape_drag_last.y
                self._set_polygon(self._polygon.translated(dx, dy))
                self._shape_drag_last = pos

    def pointer_up(self, screen: Optional[Point] = None) -> Optional[SegmentationRequest]:
        """
        Handle pointer release.

        Returns:
            A SegmentationRequest when a smart-select box drag has just
            finished with a usable box, else None
        """
        self._pan_last = None
        request = None

        if self._mode == EditMode.SMART and self._box_anchor is not None:
            if screen is not None:
                pos = self.viewport.to_image_space(screen)
                self._selection_box = SelectionBox.from_corners(self._box_anchor, pos)
            self._box_anchor = None
            box = self._selection_box
            if box is not None and box.w > MIN_BOX_SIZE and box.h > MIN_BOX_SIZE:
                request = SegmentationRequest(token=self._next_token, box=box)
                self._next_token += 1
                self._pending = request
                logger.debug(f"Smart select requested for box {box.xyxy}")
            else:
                self._selection_box = None
            self.dirty = True

        self._end_drags()
        return request

    def _pen_down(self, pos: Point):
        polygon = self._polygon

        if polygon is not None:
            radius = self.hit_radius
            for i, vertex in enumerate(polygon.points):
                if distance(pos, vertex) > radius:
                    continue
                if i == 0 and not polygon.closed and len(polygon) > 2:
                    self._push_history()
                    self._set_polygon(polygon.close())
                    return
                self._push_history()
                self._drag_index = i
                return

            if polygon.closed and point_in_polygon(pos, polygon.points):
                self._push_history()
                self._shape_drag_last = pos
                return

        if polygon is None or not polygon.closed:
            self._push_history()
            if polygon is None:
                self._set_polygon(Polygon((pos,)))
            else:
                self._set_polygon(polygon.with_point(pos))

    def _start_box(self, pos: Point):
        if self.busy:
            logger.debug("Ignoring box drag while segmentation is running")
            return
        if self._polygon is not None:
            self._push_history()
            self._set_polygon(None)
        self._box_anchor = pos
        self._selection_box = SelectionBox(pos.x, pos.y)
        self.error = None
        self.dirty = True

    def _update_hover(self, pos: Point):
        hovered = None
        inside = False
        if self._polygon is not None:
            radius = self.hit_radius
            for i, vertex in enumerate(self._polygon.points):
                if distance(pos, vertex) <= radius:
                    hovered = i
                    break
            if hovered is None and self._polygon.closed:
                inside = point_in_polygon(pos, self._polygon.points)

        if hovered != self.hovered_index or inside != self.polygon_hovered:
            self.hovered_index = hovered
            self.polygon_hovered = inside
            self.dirty = True

    # ==================== Smart Select ====================

    def complete_segmentation(self, request: SegmentationRequest, points) -> bool:
        """
        Install the polygon produced for a smart-select request.

        Results for a request that is no longer pending (the user reset or
        left geometric selection meanwhile) are dropped.

        Args:
            request: The request returned by pointer_up()
            points: Polygon vertices in image space

        Returns:
            True if the polygon was applied
        """
        if self._pending is None or self._pending.token != request.token:
            logger.info(f"Discarding stale segmentation result (token={request.token})")
            return False

        self._pending = None
        points = [p if isinstance(p, Point) else Point(*p) for p in points]
        if len(points) < 3:
            self._selection_box = None
            self.dirty = True
            return False

        self._push_history()
        self._set_polygon(Polygon(tuple(points), closed=True))
        self._selection_box = None
        self._mode = EditMode.DRAW
        return True

    def fail_segmentation(self, request: SegmentationRequest, message: str):
        """Leave the busy state after a failed call and record a user message."""
        if self._pending is None or self._pending.token != request.token:
            return
        self._pending = None
        self._selection_box = None
        self.error = message
        self.dirty = True

    # ==================== History ====================

    def undo(self) -> bool:
        if not self.history.can_undo:
            return False
        self._end_drags()
        self._set_polygon(self.history.undo(self._polygon))
        return True

    def redo(self) -> bool:
        if not self.history.can_redo:
            return False
        self._end_drags()
        self._set_polygon(self.history.redo(self._polygon))
        return True

    def reset_shape(self):
        """Drop the polygon and box. Undoable."""
        if self._polygon is not None:
            self._push_history()
        self._set_polygon(None)
        self._selection_box = None
        self._box_anchor = None
        self._pending = None
        self._end_drags()

    def handle_key(self, key: str, ctrl: bool = False, shift: bool = False, meta: bool = False) -> bool:
        """
        Keyboard shortcuts: Ctrl/Cmd+Z undo, Ctrl/Cmd+Shift+Z or Ctrl/Cmd+Y redo.

        Returns:
            True if the key was handled
        """
        if self._mode == EditMode.TEXT or not (ctrl or meta):
            return False

        key = key.lower()
        if key == "z":
            if shift:
                self.redo()
            else:
                self.undo()
            return True
        if key == "y":
            self.redo()
            return True
        return False

    # ==================== Viewport ====================

    def zoom(self, delta: float, anchor: Optional[Point] = None) -> float:
        self.dirty = True
        return self.viewport.zoom(delta, anchor)

    def wheel(self, delta_y: float, anchor: Point) -> float:
        self.dirty = True
        return self.viewport.wheel_zoom(delta_y, anchor)

    def fit_to_view(self, visible_size: Optional[tuple[float, float]] = None):
        if self.image_size is None:
            raise ValueError("Image size unknown")
        self.viewport.fit_to_view(self.image_size, visible_size)
        self.dirty = True

    def to_dict(self) -> dict:
        return {
            "mode": self._mode.value,
            "polygon": self._polygon.to_dict() if self._polygon else None,
            "selection_box": (
                {"x": self._selection_box.x, "y": self._selection_box.y,
                 "w": self._selection_box.w, "h": self._selection_box.h}
                if self._selection_box else None
            ),
            "viewport": self.viewport.to_dict(),
            "can_undo": self.history.can_undo,
            "can_redo": self.history.can_redo,
            "busy": self.busy,
            "status": self.status,
            "hovered_index": self.hovered_index,
            "polygon_hovered": self.polygon_hovered,
            "error": self.error,
        }
