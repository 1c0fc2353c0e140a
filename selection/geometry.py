"""
Geometry helpers - distances, bounding boxes and point-in-polygon tests.

All functions work in image space and accept anything that unpacks to (x, y).
"""

import math
from typing import Iterable, Sequence

import numpy as np


def distance(p1, p2) -> float:
    """Euclidean distance between two points."""
    x1, y1 = p1
    x2, y2 = p2
    return math.hypot(x1 - x2, y1 - y2)


def bounding_box(points: Iterable) -> tuple[float, float, float, float]:
    """
    Axis-aligned bounding box of a point sequence.

    Args:
        points: Iterable of (x, y) points

    Returns:
        (x, y, w, h) with (x, y) the min corner, or all zeros when empty
    """
    xs = []
    ys = []
    for x, y in points:
        xs.append(x)
        ys.append(y)

    if not xs:
        return 0.0, 0.0, 0.0, 0.0

    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)
    return min_x, min_y, max_x - min_x, max_y - min_y


def point_in_polygon(point, polygon: Sequence) -> bool:
    """
    Even-odd (ray casting) point-in-polygon test.

    Points lying exactly on an edge may classify either way.

    Args:
        point: (x, y) to classify
        polygon: Sequence of (x, y) vertices, implicitly closed

    Returns:
        True if the point is inside
    """
    px, py = point
    inside = False
    n = len(polygon)
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > py) != (yj > py):
            x_cross = (xj - xi) * (py - yi) / (yj - yi) + xi
            if px < x_cross:
                inside = not inside
        j = i
    return inside


def points_in_polygon(xs: np.ndarray, ys: np.ndarray, polygon: Sequence) -> np.ndarray:
    """
    Vectorized even-odd test over arrays of coordinates.

    Same crossing rule as point_in_polygon, so a clip mask built from this
    agrees with pointer hit-testing.

    Args:
        xs: Array of x coordinates
        ys: Array of y coordinates (broadcastable with xs)
        polygon: Sequence of (x, y) vertices

    Returns:
        Boolean array with the broadcast shape of xs and ys
    """
    xs, ys = np.broadcast_arrays(np.asarray(xs, dtype=np.float64),
                                 np.asarray(ys, dtype=np.float64))
    inside = np.zeros(xs.shape, dtype=bool)

    n = len(polygon)
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        straddles = (yi > ys) != (yj > ys)
        if yj != yi:
            x_cross = (xj - xi) * (ys - yi) / (yj - yi) + xi
            inside ^= straddles & (xs < x_cross)
        j = i
    return inside
