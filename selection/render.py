"""
Overlay rendering - draws the selection box and polygon in image space.

The overlay has the source image's size, so the client lays it over the image
under the same CSS transform. Stroke widths are divided by the zoom so they
look constant on screen.
"""

from typing import Optional

import cv2
import numpy as np

from selection.editor import POINT_RADIUS, SelectionEditor

HANDLE_COLOR = (99, 102, 241, 255)
HOVER_COLOR = (239, 68, 68, 255)
LINE_COLOR = (129, 140, 248, 255)
FILL_COLOR = (99, 102, 241, 51)
FILL_HOVER_COLOR = (99, 102, 241, 77)
BOX_COLOR = (59, 130, 246, 255)
BOX_FILL_COLOR = (59, 130, 246, 26)
BBOX_HINT_COLOR = (255, 255, 255, 77)
OUTLINE_COLOR = (255, 255, 255, 255)


def _px(value: float, scale: float) -> int:
    """Screen-constant size in image pixels, at least 1."""
    return max(1, int(round(value / scale)))


def _as_int_points(points) -> np.ndarray:
    return np.round(np.array([[p.x, p.y] for p in points], dtype=np.float64)).astype(np.int32)


def draw_overlay(editor: SelectionEditor, width: int, height: int) -> np.ndarray:
    """
    Draw the current editor state onto a transparent RGBA canvas.

    Args:
        editor: Editor whose polygon and box are drawn
        width: Canvas width (source image width)
        height: Canvas height (source image height)

    Returns:
        (H, W, 4) uint8 RGBA overlay
    """
    canvas = np.zeros((height, width, 4), dtype=np.uint8)
    scale = editor.viewport.scale

    box = editor.selection_box
    if box is not None:
        p1 = (int(round(box.x)), int(round(box.y)))
        p2 = (int(round(box.x + box.w)), int(round(box.y + box.h)))
        cv2.rectangle(canvas, p1, p2, BOX_FILL_COLOR, thickness=-1)
        cv2.rectangle(canvas, p1, p2, BOX_COLOR, thickness=_px(2, scale))

    polygon = editor.polygon
    if polygon is None or len(polygon) == 0:
        return canvas

    pts = _as_int_points(polygon.points)

    if polygon.closed:
        fill = FILL_HOVER_COLOR if editor.polygon_hovered else FILL_COLOR
        cv2.fillPoly(canvas, [pts], fill)

        bbox = polygon.bbox
        cv2.rectangle(
            canvas,
            (int(round(bbox.x)), int(round(bbox.y))),
            (int(round(bbox.x + bbox.w)), int(round(bbox.y + bbox.h))),
            BBOX_HINT_COLOR,
            thickness=_px(1, scale),
        )

    if len(pts) > 1:
        cv2.polylines(canvas, [pts], isClosed=polygon.closed, color=LINE_COLOR,
                      thickness=_px(2, scale))

    radius = _px(POINT_RADIUS, scale)
    outline = _px(1.5, scale)
    for i, (x, y) in enumerate(pts):
        color = HOVER_COLOR if editor.hovered_index == i else HANDLE_COLOR
        cv2.circle(canvas, (int(x), int(y)), radius, color, thickness=-1)
        cv2.circle(canvas, (int(x), int(y)), radius, OUTLINE_COLOR, thickness=outline)

    return canvas


class OverlayRenderer:
    """
    Caches the last overlay and redraws only when the editor is dirty.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self._frame: Optional[np.ndarray] = None
        self.redraw_count = 0

    def render(self, editor: SelectionEditor) -> np.ndarray:
        """Return the overlay for the editor's current state."""
        if self._frame is None or editor.dirty:
            self._frame = draw_overlay(editor, self.width, self.height)
            editor.dirty = False
            self.redraw_count += 1
        return self._frame
