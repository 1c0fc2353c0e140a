"""
Smart select - turn a dragged box into a polygon via segmentation.
"""

import logging
from typing import Optional

import numpy as np

from raster.polygons import DEFAULT_TOLERANCE_PX, box_to_polygon, mask_to_polygon
from services.base import CollaboratorError, ImageBackend

logger = logging.getLogger(__name__)


async def smart_select(
    backend: ImageBackend,
    image_rgba: np.ndarray,
    box_xyxy: list[float],
    tolerance: float = DEFAULT_TOLERANCE_PX,
    image_id: Optional[str] = None,
) -> tuple[list[tuple[float, float]], bool]:
    """
    Segment the object in a box and return its outline.

    Falls back to the box's own corners when the collaborator fails or the
    mask traces to fewer than 3 points, so the user always gets a shape.

    Args:
        backend: Collaborator providing segment()
        image_rgba: Source raster (H, W, 4)
        box_xyxy: [xmin, ymin, xmax, ymax] in image pixels
        tolerance: Simplification tolerance in image pixels
        image_id: Passed through so repeat calls on one image share its embedding

    Returns:
        Tuple of (points, fallback_used)
    """
    try:
        result = await backend.segment(image_rgba, box_xyxy, image_id)
    except CollaboratorError as e:
        logger.warning(f"Segmentation failed, falling back to bounding box: {e}")
        return box_to_polygon(box_xyxy), True

    polygon = mask_to_polygon(result.mask, result.scale_x, result.scale_y, tolerance)
    if polygon is None:
        logger.warning(f"Degenerate mask for box {box_xyxy}, falling back to bounding box")
        return box_to_polygon(box_xyxy), True

    logger.debug(f"Smart select produced {len(polygon)} points (score={result.score:.3f})")
    return polygon, False
