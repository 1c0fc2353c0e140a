"""
Tests for polygon utilities.
"""

import numpy as np
import pytest

from raster.polygons import (
    squared_segment_distance,
    simplify_polygon,
    scale_points,
    box_to_polygon,
    mask_to_polygon,
)


class TestSegmentDistance:
    """Tests for squared_segment_distance function."""

    def test_perpendicular(self):
        assert squared_segment_distance((5, 3), (0, 0), (10, 0)) == 9

    def test_beyond_endpoint(self):
        """Projections past an end measure to that end."""
        assert squared_segment_distance((13, 4), (0, 0), (10, 0)) == 25
        assert squared_segment_distance((-3, 0), (0, 0), (10, 0)) == 9

    def test_degenerate_segment(self):
        """A zero-length segment measures to its point."""
        assert squared_segment_distance((3, 4), (0, 0), (0, 0)) == 25


class TestSimplifyPolygon:
    """Tests for simplify_polygon function."""

    def test_collinear_points_dropped(self):
        points = [(0, 0), (1, 0), (2, 0), (3, 0), (4, 0)]
        assert simplify_polygon(points, 0.5) == [(0, 0), (4, 0)]

    def test_short_input_unchanged(self):
        assert simplify_polygon([(0, 0), (5, 5)], 1.0) == [(0, 0), (5, 5)]
        assert simplify_polygon([], 1.0) == []

    def test_corner_kept(self):
        """A vertex far from the chord survives."""
        points = [(0, 0), (5, 0.1), (10, 0), (10, 10)]
        assert simplify_polygon(points, 1.0) == [(0, 0), (10, 0), (10, 10)]

    def test_tolerance_bound(self):
        """Every dropped point is within tolerance of its replacing segment."""
        rng = np.random.default_rng(0)
        xs = np.arange(200, dtype=float)
        ys = 20 * np.sin(xs / 15) + rng.normal(0, 1.5, xs.shape)
        points = list(zip(xs.tolist(), ys.tolist()))
        tolerance = 2.0

        simplified = simplify_polygon(points, tolerance)
        kept = [points.index(p) for p in simplified]

        assert kept[0] == 0 and kept[-1] == len(points) - 1
        assert len(simplified) < len(points)
        for a, b in zip(kept, kept[1:]):
            for i in range(a + 1, b):
                assert squared_segment_distance(points[i], points[a], points[b]) <= tolerance ** 2

    def test_larger_tolerance_fewer_points(self):
        rng = np.random.default_rng(1)
        points = [(float(x), float(y)) for x, y in zip(range(100), rng.normal(0, 5, 100))]
        assert len(simplify_polygon(points, 10.0)) <= len(simplify_polygon(points, 1.0))


def test_scale_points():
    assert scale_points([(1, 2), (3, 4)], 2.0, 0.5) == [(2.0, 1.0), (6.0, 2.0)]


def test_box_to_polygon():
    """Corners clockwise from the top-left."""
    assert box_to_polygon([10, 20, 30, 40]) == [(10, 20), (30, 20), (30, 40), (10, 40)]


class TestMaskToPolygon:
    """Tests for mask_to_polygon function."""

    def test_rectangle(self):
        """A rectangular mask simplifies to its four corners."""
        mask = np.zeros((100, 100), dtype=np.uint8)
        mask[20:80, 30:70] = 1

        polygon = mask_to_polygon(mask)

        assert polygon == [(30, 20), (69, 20), (69, 79), (30, 79)]

    def test_scaled(self):
        """Mask coordinates are scaled to image pixels."""
        mask = np.zeros((100, 100), dtype=np.uint8)
        mask[20:80, 30:70] = 1

        polygon = mask_to_polygon(mask, scale_x=2.0, scale_y=4.0)

        assert polygon == [(60, 80), (138, 80), (138, 316), (60, 316)]

    def test_no_closing_duplicate(self):
        """The traced loop's repeated start point is dropped."""
        mask = np.zeros((40, 40), dtype=np.uint8)
        mask[5:30, 5:30] = 1

        polygon = mask_to_polygon(mask, tolerance=0.5)

        assert polygon[0] != polygon[-1]
        assert len(polygon) >= 3

    def test_empty_mask(self):
        """Test with empty mask."""
        assert mask_to_polygon(np.zeros((50, 50), dtype=np.uint8)) is None

    def test_tiny_region(self):
        """A one-pixel region cannot form a polygon."""
        mask = np.zeros((50, 50), dtype=np.uint8)
        mask[10, 10] = 1
        assert mask_to_polygon(mask) is None
