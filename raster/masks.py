"""
Binary mask utilities - thresholding and contour tracing.
"""

import logging
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)

# Compass directions, clockwise from north
DIRECTION_DX = (0, 1, 1, 1, 0, -1, -1, -1)
DIRECTION_DY = (-1, -1, 0, 1, 1, 1, 0, -1)


def to_binary(mask: np.ndarray, threshold: float = 0.0) -> np.ndarray:
    """
    Threshold a score/logit/probability map to a 0/1 uint8 mask.

    Args:
        mask: Array of shape (H, W)
        threshold: Values strictly greater than this are foreground

    Returns:
        Binary mask (H, W) uint8
    """
    if mask.ndim != 2:
        raise ValueError(f"Mask must be 2D, got shape {mask.shape}")
    if mask.dtype == bool:
        return mask.astype(np.uint8)
    return (mask > threshold).astype(np.uint8)


def trace_contour(mask: np.ndarray, max_iterations: Optional[int] = None) -> list[tuple[int, int]]:
    """
    Trace the outer boundary of the first foreground region (Moore neighbour walk).

    The walk starts at the first foreground pixel in row-major order and stops
    when it gets back there. Each step scans the 8 neighbours clockwise,
    starting one step back from directly behind the last move.

    Args:
        mask: Binary mask (H, W); any non-zero value is foreground
        max_iterations: Step cap, defaults to 2 * W * H. A capped walk
            returns the partial boundary.

    Returns:
        List of (x, y) mask pixels, starting and ending at the start pixel,
        or an empty list for an all-background mask
    """
    if mask.ndim != 2:
        raise ValueError(f"Mask must be 2D, got shape {mask.shape}")

    height, width = mask.shape
    foreground = np.flatnonzero(mask)
    if foreground.size == 0:
        return []

    start_y, start_x = divmod(int(foreground[0]), width)
    if max_iterations is None:
        max_iterations = 2 * width * height

    fg = mask != 0
    x, y = start_x, start_y
    points = [(x, y)]
    direction = 0
    steps = 0

    while steps < max_iterations:
        moved = False
        for i in range(8):
            d = (direction + 6 + i) % 8
            nx = x + DIRECTION_DX[d]
            ny = y + DIRECTION_DY[d]
            if 0 <= nx < width and 0 <= ny < height and fg[ny, nx]:
                x, y = nx, ny
                points.append((x, y))
                direction = d
                moved = True
                break

        if not moved:
            # Isolated pixel
            break

        steps += 1
        if x == start_x and y == start_y:
            break
    else:
        logger.warning(
            f"Contour trace hit the iteration cap ({max_iterations}); "
            f"returning {len(points)} points"
        )

    return points
