"""Tests for the collection copy progress dialog state."""

from vector_desk.models.entities import CopyProgress
from vector_desk.session.copy_progress import CopyProgressTracker


def test_progress_to_completion_then_dismiss() -> None:
    dismissed: list[bool] = []
    tracker = CopyProgressTracker("books", "books-copy", on_complete_dismiss=lambda: dismissed.append(True))
    assert tracker.phase == "creating"
    assert tracker.can_cancel
    assert not tracker.dismiss()

    tracker.update(CopyProgress(phase="copying", total_documents=10, processed_documents=5))
    assert tracker.percentage == 50
    assert tracker.title == "Copying Collection"
    assert not tracker.can_dismiss

    tracker.update(CopyProgress(phase="complete", total_documents=10, processed_documents=10))
    assert tracker.title == "Copy Complete"
    assert tracker.history == ["creating", "copying", "complete"]
    assert tracker.dismiss()
    assert not tracker.open
    assert dismissed == [True]


def test_terminal_phase_ignores_late_events() -> None:
    tracker = CopyProgressTracker("a", "b")
    tracker.update(CopyProgress(phase="cancelled", total_documents=4, processed_documents=2))
    tracker.update(CopyProgress(phase="copying", total_documents=4, processed_documents=3))
    assert tracker.phase == "cancelled"
    assert tracker.description == "Copy was cancelled. 2 of 4 documents were copied."
    assert not tracker.can_cancel


def test_error_dismiss_does_not_fire_completion_callback() -> None:
    calls: list[int] = []
    tracker = CopyProgressTracker("a", "b", on_complete_dismiss=lambda: calls.append(1))
    tracker.update(CopyProgress(phase="error", message="quota exceeded"))
    assert tracker.title == "Copy Failed"
    assert tracker.description == "quota exceeded"
    assert tracker.dismiss()
    assert calls == []


def test_percentage_rounds_half_up() -> None:
    tracker = CopyProgressTracker("a", "b")
    assert tracker.percentage == 0
    tracker.update(CopyProgress(phase="copying", total_documents=8, processed_documents=1))
    assert tracker.percentage == 13
