"""
Tests for geometry helpers and selection models
"""

import numpy as np
import pytest

from selection.geometry import distance, bounding_box, point_in_polygon, points_in_polygon
from selection.models import BoundingBox, Point, Polygon, SelectionBox


SQUARE = [(0, 0), (10, 0), (10, 10), (0, 10)]
# U shape opening upwards; the notch is x in (4, 6), y < 8
U_SHAPE = [(0, 0), (4, 0), (4, 8), (6, 8), (6, 0), (10, 0), (10, 10), (0, 10)]


class TestBoundingBox:
    def test_bounds(self):
        """Box spans the extreme coordinates."""
        assert bounding_box([(3, 7), (-2, 4), (5, 1)]) == (-2, 1, 7, 6)

    def test_empty(self):
        """Empty input gives the zero box."""
        assert bounding_box([]) == (0.0, 0.0, 0.0, 0.0)

    def test_single_point(self):
        """A single point has zero size."""
        assert bounding_box([(4, 5)]) == (4, 5, 0, 0)

    def test_xyxy(self):
        """xyxy converts from min corner plus size."""
        assert BoundingBox(1, 2, 3, 4).xyxy == [1, 2, 4, 6]


class TestPointInPolygon:
    def test_inside_and_outside(self):
        """Centre is inside a square, far points are not."""
        assert point_in_polygon((5, 5), SQUARE)
        assert not point_in_polygon((15, 5), SQUARE)
        assert not point_in_polygon((-1, -1), SQUARE)

    def test_concave(self):
        """The notch of a concave polygon is outside."""
        assert not point_in_polygon((5, 4), U_SHAPE)
        assert point_in_polygon((2, 4), U_SHAPE)
        assert point_in_polygon((5, 9), U_SHAPE)

    def test_vectorized_matches_scalar(self):
        """Array version agrees with the scalar test on a grid."""
        xs, ys = np.meshgrid(np.arange(-1, 12) + 0.5, np.arange(-1, 12) + 0.5)
        result = points_in_polygon(xs, ys, U_SHAPE)

        for (row, col), inside in np.ndenumerate(result):
            assert inside == point_in_polygon((xs[row, col], ys[row, col]), U_SHAPE)


def test_distance():
    """Euclidean distance."""
    assert distance((0, 0), (3, 4)) == 5.0
    assert distance(Point(1, 1), Point(1, 1)) == 0.0


class TestPolygon:
    def test_bbox_tracks_points(self):
        """bbox is recomputed for every derived polygon."""
        polygon = Polygon(((0, 0), (10, 0), (10, 5)))
        assert polygon.bbox == BoundingBox(0, 0, 10, 5)

        moved = polygon.translated(3, -2)
        assert moved.bbox == BoundingBox(3, -2, 10, 5)

        edited = polygon.with_vertex(2, Point(20, 30))
        assert edited.bbox == BoundingBox(0, 0, 20, 30)

    def test_immutable_snapshots(self):
        """Derived polygons leave the original alone."""
        polygon = Polygon(((0, 0), (10, 0)))
        longer = polygon.with_point(Point(10, 10))

        assert len(polygon) == 2
        assert len(longer) == 3
        with pytest.raises(AttributeError):
            polygon.closed = True

    def test_closed_needs_three_points(self):
        """A closed polygon with fewer than 3 points is rejected."""
        with pytest.raises(ValueError):
            Polygon(((0, 0), (1, 1)), closed=True)
        with pytest.raises(ValueError):
            Polygon(((0, 0), (1, 1))).close()

        closed = Polygon(((0, 0), (1, 0), (1, 1))).close()
        assert closed.closed

    def test_tuples_become_points(self):
        """Plain tuples are converted to Point."""
        polygon = Polygon(((1, 2), (3, 4)))
        assert polygon.points == (Point(1, 2), Point(3, 4))
        assert polygon.as_tuples() == [(1, 2), (3, 4)]

    def test_to_dict(self):
        """Serialized form carries points, closed flag and bbox."""
        data = Polygon(((0, 0), (4, 0), (4, 3)), closed=True).to_dict()
        assert data["points"] == [[0, 0], [4, 0], [4, 3]]
        assert data["closed"] is True
        assert data["bbox"] == {"x": 0, "y": 0, "w": 4, "h": 3}


def test_selection_box_from_corners():
    """Corners in any order give a normalized box."""
    box = SelectionBox.from_corners(Point(30, 5), Point(10, 25))
    assert (box.x, box.y, box.w, box.h) == (10, 5, 20, 20)
    assert box.xyxy == [10, 5, 30, 25]
