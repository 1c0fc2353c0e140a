"""
Tests for the selection editor state machine
"""

import numpy as np
import pytest

from selection.editor import PointerButton, SelectionEditor
from selection.models import EditMode, Point
from selection.render import HANDLE_COLOR, OverlayRenderer
from selection.viewport import Viewport


def click(editor, x, y, **kwargs):
    editor.pointer_down(Point(x, y), **kwargs)
    return editor.pointer_up(Point(x, y))


def drag(editor, start, end):
    editor.pointer_down(Point(*start))
    editor.pointer_move(Point(*end))
    return editor.pointer_up(Point(*end))


@pytest.fixture
def pen():
    return SelectionEditor(image_size=(200, 150), mode=EditMode.DRAW)


@pytest.fixture
def triangle(pen):
    """Pen editor holding a closed triangle (10,10) (100,10) (100,100)."""
    click(pen, 10, 10)
    click(pen, 100, 10)
    click(pen, 100, 100)
    click(pen, 12, 11)
    return pen


class TestPen:
    def test_draw_and_close(self, pen):
        """Clicks add vertices; clicking the first vertex closes the shape."""
        click(pen, 10, 10)
        assert pen.status == "Drawing..."
        click(pen, 100, 10)
        click(pen, 100, 100)

        assert len(pen.polygon) == 3
        assert not pen.polygon.closed

        click(pen, 12, 11)
        assert pen.polygon.closed
        assert len(pen.polygon) == 3
        assert pen.status == "Shape Closed"
        assert len(pen.history) == 4

    def test_two_points_cannot_close(self, pen):
        """Clicking the first vertex of a 2-point path starts a drag instead."""
        click(pen, 10, 10)
        click(pen, 100, 10)
        pen.pointer_down(Point(11, 10))

        assert not pen.polygon.closed
        assert pen.is_dragging
        pen.pointer_move(Point(20, 30))
        pen.pointer_up()
        assert pen.polygon.points[0] == Point(20, 30)

    def test_clicks_outside_closed_shape_ignored(self, triangle):
        """A closed polygon does not grow."""
        before = triangle.polygon
        history = len(triangle.history)

        click(triangle, 180, 140)

        assert triangle.polygon is before
        assert len(triangle.history) == history

    def test_vertex_drag_single_push(self, triangle):
        """Dragging a vertex moves it and pushes history once."""
        history = len(triangle.history)

        triangle.pointer_down(Point(99, 101))
        triangle.pointer_move(Point(110, 105))
        triangle.pointer_move(Point(120, 110))
        triangle.pointer_up()

        assert triangle.polygon.points[2] == Point(120, 110)
        assert len(triangle.history) == history + 1

        triangle.undo()
        assert triangle.polygon.points[2] == Point(100, 100)

    def test_shape_drag(self, triangle):
        """Dragging inside a closed polygon translates every vertex."""
        triangle.pointer_down(Point(70, 30))
        assert triangle.is_dragging
        triangle.pointer_move(Point(75, 40))
        triangle.pointer_move(Point(80, 50))
        triangle.pointer_up()

        assert triangle.polygon.as_tuples() == [(20, 30), (110, 30), (110, 120)]
        assert triangle.polygon.bbox.xyxy == [20, 30, 110, 120]
        assert not triangle.is_dragging

    def test_hover(self, triangle):
        """Hover tracks the vertex under the pointer, then the shape body."""
        triangle.pointer_move(Point(101, 12))
        assert triangle.hovered_index == 1
        assert not triangle.polygon_hovered

        triangle.pointer_move(Point(70, 30))
        assert triangle.hovered_index is None
        assert triangle.polygon_hovered

    def test_hit_radius_follows_zoom(self):
        """Grab radius is constant on screen, so smaller in image space when zoomed in."""
        editor = SelectionEditor(viewport=Viewport(scale=2.0), mode=EditMode.DRAW)
        assert editor.hit_radius == pytest.approx(5.0)

        click(editor, 20, 20)  # image (10, 10)
        click(editor, 200, 20)
        click(editor, 200, 200)
        click(editor, 28, 20)  # 4 image px away, inside radius
        assert editor.polygon.closed


class TestHistory:
    def test_undo_redo(self, pen):
        """Undo removes vertices one at a time; redo puts them back."""
        click(pen, 10, 10)
        click(pen, 50, 10)

        assert pen.undo()
        assert len(pen.polygon) == 1
        assert pen.undo()
        assert pen.polygon is None
        assert not pen.undo()

        assert pen.redo()
        assert pen.redo()
        assert len(pen.polygon) == 2
        assert not pen.redo()

    def test_reset_is_undoable(self, triangle):
        triangle.reset_shape()
        assert triangle.polygon is None

        triangle.undo()
        assert triangle.polygon.closed

    def test_keyboard_shortcuts(self, pen):
        """Ctrl+Z undoes, Ctrl+Shift+Z and Ctrl+Y redo."""
        click(pen, 10, 10)
        click(pen, 50, 10)

        assert pen.handle_key("z", ctrl=True)
        assert len(pen.polygon) == 1
        assert pen.handle_key("Z", ctrl=True, shift=True)
        assert len(pen.polygon) == 2
        pen.handle_key("z", meta=True)
        assert pen.handle_key("y", ctrl=True)
        assert len(pen.polygon) == 2

        assert not pen.handle_key("z")
        assert not pen.handle_key("x", ctrl=True)

    def test_keys_ignored_in_text_mode(self):
        editor = SelectionEditor()
        assert not editor.handle_key("z", ctrl=True)

    def test_text_mode_clears_everything(self, triangle):
        """Leaving geometric selection drops polygon and history."""
        triangle.set_mode(EditMode.TEXT)

        assert triangle.polygon is None
        assert not triangle.history.can_undo
        assert not triangle.history.can_redo


class TestSmartSelect:
    @pytest.fixture
    def smart(self):
        return SelectionEditor(image_size=(200, 150), mode=EditMode.SMART)

    def test_box_request(self, smart):
        """A box drag produces a segmentation request and marks the editor busy."""
        smart.pointer_down(Point(10, 10))
        smart.pointer_move(Point(40, 30))
        assert smart.selection_box.xyxy == [10, 10, 40, 30]

        request = smart.pointer_up(Point(60, 50))

        assert request is not None
        assert request.xyxy == [10, 10, 60, 50]
        assert smart.busy
        assert smart.status == "Analyzing..."

    def test_tiny_box_ignored(self, smart):
        """Boxes of 5px or less are treated as clicks."""
        request = drag(smart, (10, 10), (14, 40))
        assert request is None
        assert smart.selection_box is None
        assert not smart.busy

    def test_complete(self, smart):
        """A segmentation result becomes a closed polygon in pen mode."""
        request = drag(smart, (10, 10), (60, 50))
        applied = smart.complete_segmentation(request, [(12, 12), (58, 12), (58, 48), (12, 48)])

        assert applied
        assert not smart.busy
        assert smart.mode == EditMode.DRAW
        assert smart.polygon.closed
        assert smart.selection_box is None

        smart.undo()
        assert smart.polygon is None

    def test_degenerate_result(self, smart):
        """Fewer than 3 points leaves the polygon unchanged."""
        request = drag(smart, (10, 10), (60, 50))
        assert not smart.complete_segmentation(request, [(1, 1), (2, 2)])
        assert smart.polygon is None
        assert not smart.busy
        assert smart.mode == EditMode.SMART

    def test_stale_result_discarded(self, smart):
        """A result arriving after the user left smart mode is dropped."""
        request = drag(smart, (10, 10), (60, 50))
        smart.set_mode(EditMode.TEXT)

        assert not smart.complete_segmentation(request, [(0, 0), (10, 0), (10, 10)])
        assert smart.polygon is None
        assert smart.mode == EditMode.TEXT

    def test_mode_switch_mid_drag(self, smart):
        """Switching to pen while dragging a box drops the box."""
        smart.pointer_down(Point(10, 10))
        smart.pointer_move(Point(40, 30))
        smart.set_mode(EditMode.DRAW)

        assert smart.selection_box is None
        assert smart.to_dict()["selection_box"] is None

        smart.set_mode(EditMode.SMART)
        assert smart.pointer_up(Point(60, 50)) is None
        assert smart.selection_box is None
        assert not smart.busy

    def test_no_second_box_while_busy(self, smart):
        """New box drags are ignored until segmentation resolves."""
        first = drag(smart, (10, 10), (60, 50))
        second = drag(smart, (70, 70), (120, 120))

        assert second is None
        assert smart.selection_box.xyxy == first.xyxy

    def test_failure(self, smart):
        """A failed call clears busy and records the message."""
        request = drag(smart, (10, 10), (60, 50))
        smart.fail_segmentation(request, "Smart selection failed.")

        assert not smart.busy
        assert smart.error == "Smart selection failed."
        assert smart.polygon is None

    def test_new_box_replaces_polygon(self, smart):
        """Starting a box discards the previous shape, undoably."""
        request = drag(smart, (10, 10), (60, 50))
        smart.complete_segmentation(request, [(12, 12), (58, 12), (58, 48)])
        smart.set_mode(EditMode.SMART)

        smart.pointer_down(Point(100, 100))
        assert smart.polygon is None
        smart.pointer_up(Point(101, 101))

        smart.undo()
        assert smart.polygon.closed


class TestPanAndZoom:
    def test_text_mode_pans(self):
        """In TEXT mode any drag pans the view."""
        editor = SelectionEditor()
        drag(editor, (10, 10), (40, 25))

        assert editor.viewport.offset == Point(30, 15)
        assert not editor.is_panning

    def test_shift_and_middle_pan(self, pen):
        """Shift-drag and middle-button drag pan without adding vertices."""
        pen.pointer_down(Point(10, 10), shift=True)
        pen.pointer_move(Point(20, 10))
        pen.pointer_up()

        pen.pointer_down(Point(0, 0), button=PointerButton.MIDDLE)
        pen.pointer_move(Point(0, 5))
        pen.pointer_up()

        assert pen.polygon is None
        assert pen.viewport.offset == Point(10, 5)

    def test_zoom_maps_clicks(self, pen):
        """Clicks land in image space after zooming."""
        pen.zoom(1.0, Point(0, 0))
        click(pen, 50, 80)
        assert pen.polygon.points[0] == Point(25, 40)

    def test_fit_to_view(self, pen):
        pen.fit_to_view((240, 190))
        assert pen.viewport.scale == pytest.approx(1.0)
        assert pen.viewport.offset == Point(20, 20)


class TestOverlay:
    def test_redraw_only_when_dirty(self, pen):
        renderer = OverlayRenderer(200, 150)
        renderer.render(pen)
        renderer.render(pen)
        assert renderer.redraw_count == 1

        click(pen, 10, 10)
        renderer.render(pen)
        assert renderer.redraw_count == 2

    def test_draws_handles(self, triangle):
        """Vertices are drawn as handles; far pixels stay transparent."""
        frame = OverlayRenderer(200, 150).render(triangle)

        assert frame.shape == (150, 200, 4)
        assert tuple(frame[10, 100]) == HANDLE_COLOR
        assert frame[140, 10, 3] == 0
        # Inside the shape is tinted
        assert frame[30, 70, 3] > 0
