"""
Undo/redo log of polygon snapshots.
"""

from typing import Optional

from selection.models import Polygon


class EditHistory:
    """
    Two stacks of Polygon snapshots.

    None is a valid snapshot and means "no polygon". The current polygon is
    owned by the caller and is never stored on either stack.
    """

    def __init__(self):
        self._undo: list[Optional[Polygon]] = []
        self._redo: list[Optional[Polygon]] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def __len__(self) -> int:
        return len(self._undo)

    def push(self, current: Optional[Polygon]):
        """Record the pre-edit state. Any redo branch is dropped."""
        self._undo.append(current)
        self._redo.clear()

    def undo(self, current: Optional[Polygon]) -> Optional[Polygon]:
        """
        Step back one edit.

        Args:
            current: The polygon being replaced

        Returns:
            The restored snapshot, or current unchanged if there is nothing to undo
        """
        if not self._undo:
            return current
        previous = self._undo.pop()
        self._redo.append(current)
        return previous

    def redo(self, current: Optional[Polygon]) -> Optional[Polygon]:
        """Mirror of undo()."""
        if not self._redo:
            return current
        following = self._redo.pop()
        self._undo.append(current)
        return following

    def clear(self):
        self._undo.clear()
        self._redo.clear()
