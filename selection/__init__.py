"""
Selection module - Polygon model, viewport transform, history and edit engine
"""

from selection.models import EditMode, Point, BoundingBox, Polygon, SelectionBox
from selection.geometry import distance, bounding_box, point_in_polygon, points_in_polygon
from selection.viewport import Viewport
from selection.history import EditHistory
from selection.editor import SelectionEditor, SegmentationRequest, PointerButton
from selection.render import OverlayRenderer, draw_overlay

__all__ = [
    "EditMode", "Point", "BoundingBox", "Polygon", "SelectionBox",
    "distance", "bounding_box", "point_in_polygon", "points_in_polygon",
    "Viewport", "EditHistory",
    "SelectionEditor", "SegmentationRequest", "PointerButton",
    "OverlayRenderer", "draw_overlay",
]
