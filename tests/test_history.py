"""
Tests for the undo/redo history
"""

from selection.history import EditHistory
from selection.models import Polygon


A = Polygon(((0, 0),))
B = Polygon(((0, 0), (1, 0)))
C = Polygon(((0, 0), (1, 0), (1, 1)))


def test_empty_history():
    """Undo and redo on an empty history are no-ops."""
    history = EditHistory()
    assert not history.can_undo
    assert not history.can_redo
    assert history.undo(A) is A
    assert history.redo(A) is A


def test_undo_redo_sequence():
    """Undo walks back through pushed snapshots, redo walks forward."""
    history = EditHistory()
    current = None

    for nxt in (A, B, C):
        history.push(current)
        current = nxt

    assert len(history) == 3

    current = history.undo(current)
    assert current is B
    current = history.undo(current)
    assert current is A
    current = history.undo(current)
    assert current is None
    assert not history.can_undo

    current = history.redo(current)
    assert current is A
    current = history.redo(current)
    assert current is B
    assert history.can_redo


def test_undo_then_redo_restores():
    """undo followed by redo returns to the same state."""
    history = EditHistory()
    history.push(A)

    restored = history.undo(B)
    assert restored is A
    assert history.redo(restored) is B


def test_push_drops_redo_branch():
    """A new edit after undo discards the redo stack."""
    history = EditHistory()
    history.push(None)
    current = history.undo(A)
    assert history.can_redo

    history.push(current)
    assert not history.can_redo


def test_clear():
    history = EditHistory()
    history.push(A)
    history.undo(B)
    history.clear()
    assert not history.can_undo
    assert not history.can_redo
