"""
Alpha keying - make pixels close to a key color transparent.
"""

import numpy as np

DEFAULT_TOLERANCE = 15.0
DEFAULT_SOFTNESS = 2.0

# Width of the soft band per unit of softness, in RGB distance
SOFTNESS_BAND = 10.0

WHITE = (255, 255, 255)


def color_distance(rgba: np.ndarray, key_color: tuple[int, int, int] = WHITE) -> np.ndarray:
    """
    Euclidean RGB distance of every pixel from the key color.

    Args:
        rgba: Raster (H, W, 4)
        key_color: (r, g, b)

    Returns:
        Float array (H, W)
    """
    diff = np.asarray(key_color, dtype=np.float64) - rgba[..., :3].astype(np.float64)
    return np.sqrt(np.sum(diff * diff, axis=-1))


def key_out_color(
    rgba: np.ndarray,
    tolerance: float = DEFAULT_TOLERANCE,
    softness: float = DEFAULT_SOFTNESS,
    key_color: tuple[int, int, int] = WHITE,
) -> np.ndarray:
    """
    Compute a new alpha channel from each pixel's distance to the key color.

    d < tolerance: alpha becomes 0.
    tolerance <= d < tolerance + 10 * softness: alpha is scaled linearly by
    the position inside that band, giving soft edges.
    Otherwise alpha is kept. Fully transparent pixels are never touched.

    Args:
        rgba: Raster (H, W, 4) uint8; not modified
        tolerance: Distance below which pixels are removed
        softness: Width of the soft band, in units of 10
        key_color: Color to remove, white by default

    Returns:
        New (H, W, 4) uint8 raster
    """
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError(f"Expected an RGBA raster (H, W, 4), got shape {rgba.shape}")

    out = rgba.copy()
    alpha = out[..., 3]
    visible = alpha > 0
    dist = color_distance(rgba, key_color)

    band = softness * SOFTNESS_BAND
    cut = visible & (dist < tolerance)
    soft = visible & ~cut & (dist < tolerance + band)

    alpha[cut] = 0
    if band > 0 and soft.any():
        factor = (dist[soft] - tolerance) / band
        alpha[soft] = np.floor(alpha[soft].astype(np.float64) * factor).astype(np.uint8)

    return out
