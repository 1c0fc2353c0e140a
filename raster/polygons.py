"""
Polygon utilities for turning segmentation masks into editable polygons.
"""

from typing import Optional, Sequence

import numpy as np

from raster.masks import trace_contour

# Douglas-Peucker tolerance for smart-select outlines, in image pixels
DEFAULT_TOLERANCE_PX = 3.0


def squared_segment_distance(p, a, b) -> float:
    """
    Squared distance from point p to the segment a-b.

    The projection is clamped to the segment, so points beyond an endpoint
    measure to that endpoint.
    """
    px, py = p
    x, y = a
    dx = b[0] - x
    dy = b[1] - y

    if dx != 0 or dy != 0:
        t = ((px - x) * dx + (py - y) * dy) / (dx * dx + dy * dy)
        if t > 1:
            x, y = b
        elif t > 0:
            x += dx * t
            y += dy * t

    dx = px - x
    dy = py - y
    return dx * dx + dy * dy


def simplify_polygon(points: Sequence, tolerance: float) -> list:
    """
    Simplify a point path using the Ramer-Douglas-Peucker algorithm.

    Every dropped point lies within `tolerance` of the retained segment that
    replaces it. Both endpoints are always kept.

    Args:
        points: Sequence of (x, y) points
        tolerance: Maximum allowed deviation, in the units of the points

    Returns:
        Simplified list of points (same point objects as the input)
    """
    points = list(points)
    if len(points) <= 2:
        return points

    sq_tolerance = tolerance * tolerance
    keep = np.zeros(len(points), dtype=bool)
    keep[0] = keep[-1] = True

    # (first, last) index spans still to examine
    stack = [(0, len(points) - 1)]
    while stack:
        first, last = stack.pop()
        max_sq_dist = 0.0
        index = first
        for i in range(first + 1, last):
            sq_dist = squared_segment_distance(points[i], points[first], points[last])
            if sq_dist > max_sq_dist:
                max_sq_dist = sq_dist
                index = i

        if max_sq_dist > sq_tolerance:
            keep[index] = True
            stack.append((first, index))
            stack.append((index, last))

    return [p for p, k in zip(points, keep) if k]


def scale_points(
    points: Sequence,
    scale_x: float,
    scale_y: float,
) -> list[tuple[float, float]]:
    """Map mask-space points to image space."""
    return [(x * scale_x, y * scale_y) for x, y in points]


def box_to_polygon(box_xyxy: Sequence[float]) -> list[tuple[float, float]]:
    """
    Four corners of a box, clockwise from the top-left.

    Args:
        box_xyxy: [xmin, ymin, xmax, ymax]
    """
    x1, y1, x2, y2 = box_xyxy
    return [(x1, y1), (x2, y1), (x2, y2), (x1, y2)]


def mask_to_polygon(
    mask: np.ndarray,
    scale_x: float = 1.0,
    scale_y: float = 1.0,
    tolerance: float = DEFAULT_TOLERANCE_PX,
    min_points: int = 3,
) -> Optional[list[tuple[float, float]]]:
    """
    Convert a binary mask to a simplified polygon in image pixels.

    Traces the boundary of the first foreground region, scales it back to
    image space, then simplifies it in image space so the tolerance is in
    image pixels.

    Args:
        mask: Binary mask (H, W), usually at inference resolution
        scale_x: Image pixels per mask column
        scale_y: Image pixels per mask row
        tolerance: Simplification tolerance in image pixels
        min_points: Minimum number of points required

    Returns:
        List of (x, y) image coordinates or None if no usable polygon
    """
    contour = trace_contour(mask)
    if len(contour) < min_points:
        return None

    polygon = simplify_polygon(scale_points(contour, scale_x, scale_y), tolerance)

    # The traced loop ends on its start pixel; the polygon closes implicitly
    if len(polygon) > 1 and polygon[0] == polygon[-1]:
        polygon = polygon[:-1]

    if len(polygon) < min_points:
        return None

    return polygon
