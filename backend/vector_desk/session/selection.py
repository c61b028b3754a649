"""Row selection for the documents table.

Selection is kept in insertion order so that "the most recently added
remaining id" is well defined when the primary row is toggled off.
Gestures are translated by ``TableSelectionController`` against the ordered
list of row ids as displayed (drafts first, then fetched rows).
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Sequence

RowIdsProvider = Callable[[], Sequence[str]]
PointerUpListener = Callable[[], None]


class SelectionState:
    """Multi-selection with a primary row and a range anchor."""

    def __init__(self) -> None:
        # dict keys give an insertion-ordered set
        self._selected: dict[str, None] = {}
        self.primary_id: str | None = None
        self.anchor_id: str | None = None
        self.detail_open = False

    @property
    def selected_ids(self) -> list[str]:
        return list(self._selected)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._selected

    def __len__(self) -> int:
        return len(self._selected)

    def select_single(self, row_id: str) -> None:
        self._selected = {row_id: None}
        self.primary_id = row_id
        self.anchor_id = row_id
        self.detail_open = True

    def toggle(self, row_id: str) -> None:
        if row_id in self._selected:
            del self._selected[row_id]
            if self.primary_id == row_id:
                self.primary_id = next(reversed(self._selected), None)
        else:
            self._selected[row_id] = None
            self.primary_id = row_id
        self.anchor_id = row_id
        self.detail_open = bool(self._selected)

    def range_select(self, ids: Sequence[str], new_anchor: str | None = None) -> None:
        """Replace the selection with ``ids``; the anchor moves only when given."""
        self._selected = dict.fromkeys(ids)
        self.primary_id = ids[-1] if ids else None
        if new_anchor is not None:
            self.anchor_id = new_anchor
        self.detail_open = bool(self._selected)

    def add_range(self, ids: Sequence[str]) -> None:
        for row_id in ids:
            self._selected.setdefault(row_id, None)
        if ids:
            self.primary_id = ids[-1]
        self.detail_open = bool(self._selected)

    def discard(self, ids: Sequence[str]) -> None:
        """Drop rows that no longer exist, keeping the primary invariant."""
        for row_id in ids:
            self._selected.pop(row_id, None)
        if self.primary_id not in self._selected:
            self.primary_id = next(reversed(self._selected), None)
        self.detail_open = bool(self._selected)

    def clear(self) -> None:
        self._selected = {}
        self.primary_id = None
        self.anchor_id = None
        self.detail_open = False


def compute_range(ordered_ids: Sequence[str], anchor_index: int, target_index: int) -> list[str]:
    """Inclusive contiguous slice between two row indexes, in display order."""
    start = min(anchor_index, target_index)
    end = max(anchor_index, target_index)
    return list(ordered_ids[start : end + 1])


@dataclass(slots=True)
class DragSession:
    """Transient drag state. Never persisted."""

    start_index: int
    is_dragging: bool = True


class PointerSurface:
    """Document-scoped pointer-up notifications.

    A drag can end outside any row, so release is observed here rather than
    on the row that started it.
    """

    def __init__(self) -> None:
        self._listeners: list[PointerUpListener] = []

    def subscribe(self, listener: PointerUpListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def pointer_up(self) -> None:
        for listener in list(self._listeners):
            listener()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


class TableSelectionController:
    """Maps pointer gestures on table rows to selection operations."""

    def __init__(self, selection: SelectionState, row_ids: RowIdsProvider) -> None:
        self.selection = selection
        self._row_ids = row_ids
        self.drag: DragSession | None = None

    def _anchor_index(self, ordered: Sequence[str]) -> int | None:
        anchor = self.selection.anchor_id
        if anchor is None or anchor not in ordered:
            return None
        return list(ordered).index(anchor)

    def click(self, row_id: str, toggle: bool = False, shift: bool = False) -> None:
        ordered = self._row_ids()
        row_index = list(ordered).index(row_id)
        selection = self.selection

        if toggle and shift:
            anchor_index = self._anchor_index(ordered)
            if anchor_index is not None:
                selection.add_range(compute_range(ordered, anchor_index, row_index))
                return
            selection.toggle(row_id)
        elif shift:
            anchor_index = self._anchor_index(ordered)
            if anchor_index is not None:
                selection.range_select(compute_range(ordered, anchor_index, row_index))
                return
            selection.select_single(row_id)
        elif toggle:
            selection.toggle(row_id)
        elif row_id in selection and len(selection) == 1:
            selection.toggle(row_id)
        else:
            selection.select_single(row_id)

    def press(self, row_index: int, toggle: bool = False, shift: bool = False, button: int = 0) -> None:
        """Pointer-down on a row; only a plain primary-button press starts a drag."""
        if not toggle and not shift and button == 0:
            self.drag = DragSession(start_index=row_index)

    def enter(self, row_index: int) -> None:
        """Pointer moved over a row while possibly dragging."""
        drag = self.drag
        if drag is None or not drag.is_dragging:
            return
        ordered = self._row_ids()
        if drag.start_index >= len(ordered):
            # rows shrank under the drag
            self.release()
            return
        if not 0 <= row_index < len(ordered):
            return
        self.selection.range_select(
            compute_range(ordered, drag.start_index, row_index),
            new_anchor=ordered[drag.start_index],
        )

    def release(self) -> None:
        self.drag = None

    @contextmanager
    def attached(self, surface: PointerSurface) -> Iterator["TableSelectionController"]:
        """Listen for pointer-up on ``surface`` for the lifetime of the block."""
        unsubscribe = surface.subscribe(self.release)
        try:
            yield self
        finally:
            unsubscribe()
            self.release()


__all__ = [
    "SelectionState",
    "compute_range",
    "DragSession",
    "PointerSurface",
    "TableSelectionController",
]
