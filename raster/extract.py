"""
Clip a raster to a polygon and place crops back on a full-size canvas.
"""

import math

import numpy as np

from raster.codec import resize_rgba
from selection.geometry import points_in_polygon
from selection.models import Polygon


def crop_rect(polygon: Polygon, image_size: tuple[int, int]) -> tuple[int, int, int, int]:
    """
    Integer pixel rectangle covering the polygon's bounding box.

    Args:
        polygon: Polygon in image space
        image_size: (width, height) of the source image

    Returns:
        (x1, y1, x2, y2), clipped to the image, x2/y2 exclusive

    Raises:
        ValueError: If the box does not overlap the image
    """
    width, height = image_size
    x_min, y_min, x_max, y_max = polygon.bbox.xyxy

    x1 = max(0, math.floor(x_min))
    y1 = max(0, math.floor(y_min))
    x2 = min(width, math.ceil(x_max))
    y2 = min(height, math.ceil(y_max))

    if x2 <= x1 or y2 <= y1:
        raise ValueError(
            f"Selection {polygon.bbox.xyxy} does not overlap the {width}x{height} image"
        )
    return x1, y1, x2, y2


def polygon_mask(polygon: Polygon, rect: tuple[int, int, int, int]) -> np.ndarray:
    """
    Boolean inside-mask for every pixel of rect, sampled at pixel centres.

    Uses the same even-odd rule as pointer hit-testing.
    """
    x1, y1, x2, y2 = rect
    xs = np.arange(x1, x2, dtype=np.float64) + 0.5
    ys = np.arange(y1, y2, dtype=np.float64) + 0.5
    return points_in_polygon(xs[np.newaxis, :], ys[:, np.newaxis], polygon.as_tuples())


def clip_to_polygon(
    rgba: np.ndarray,
    polygon: Polygon,
) -> tuple[np.ndarray, tuple[int, int, int, int]]:
    """
    Crop a raster to the polygon's bounding box, clearing pixels outside it.

    Args:
        rgba: Source raster (H, W, 4); not modified
        polygon: Closed polygon in image space

    Returns:
        Tuple of (crop, rect):
            - crop: (h, w, 4) uint8 raster, outside pixels fully transparent
            - rect: (x1, y1, x2, y2) position of the crop in the source
    """
    if not polygon.closed:
        raise ValueError("Polygon must be closed before clipping")

    height, width = rgba.shape[:2]
    rect = crop_rect(polygon, (width, height))
    x1, y1, x2, y2 = rect

    crop = rgba[y1:y2, x1:x2].copy()
    crop[~polygon_mask(polygon, rect)] = 0
    return crop, rect


def place_on_canvas(
    crop: np.ndarray,
    rect: tuple[int, int, int, int],
    canvas_size: tuple[int, int],
) -> np.ndarray:
    """
    Paste a crop onto a transparent canvas at its original position.

    The crop is resampled to the rect size first, since a collaborator may
    return a different resolution than it was sent.

    Args:
        crop: (h, w, 4) raster
        rect: (x1, y1, x2, y2) target rectangle
        canvas_size: (width, height) of the full canvas

    Returns:
        (H, W, 4) uint8 raster
    """
    width, height = canvas_size
    x1, y1, x2, y2 = rect

    canvas = np.zeros((height, width, 4), dtype=np.uint8)
    canvas[y1:y2, x1:x2] = resize_rgba(crop, (x2 - x1, y2 - y1))
    return canvas
