"""Progress dialog state for a long-running collection copy."""

from __future__ import annotations

import math
from typing import Callable

from vector_desk.models.entities import CopyProgress

WORKING_PHASES = frozenset({"creating", "copying"})
TERMINAL_PHASES = frozenset({"complete", "error", "cancelled"})


class CopyProgressTracker:
    """Follows progress events; once terminal, later events are ignored."""

    def __init__(
        self,
        source_name: str,
        target_name: str,
        on_complete_dismiss: Callable[[], None] | None = None,
    ) -> None:
        self.source_name = source_name
        self.target_name = target_name
        self.progress = CopyProgress(phase="creating", message="Creating collection...")
        self.open = True
        self.history: list[str] = ["creating"]
        self._on_complete_dismiss = on_complete_dismiss

    def update(self, progress: CopyProgress) -> None:
        if self.is_terminal:
            return
        if progress.phase != self.progress.phase:
            self.history.append(progress.phase)
        self.progress = progress

    @property
    def phase(self) -> str:
        return self.progress.phase

    @property
    def is_working(self) -> bool:
        return self.phase in WORKING_PHASES

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    @property
    def can_cancel(self) -> bool:
        return self.is_working

    @property
    def can_dismiss(self) -> bool:
        return self.is_terminal

    @property
    def percentage(self) -> int:
        total = self.progress.total_documents
        if total <= 0:
            return 0
        return math.floor(self.progress.processed_documents / total * 100 + 0.5)

    @property
    def title(self) -> str:
        if self.phase == "complete":
            return "Copy Complete"
        if self.phase == "error":
            return "Copy Failed"
        if self.phase == "cancelled":
            return "Copy Cancelled"
        return "Copying Collection"

    @property
    def description(self) -> str:
        progress = self.progress
        if self.phase == "complete":
            return f"Copied {progress.processed_documents} documents to {self.target_name}"
        if self.phase == "error":
            return progress.message
        if self.phase == "cancelled":
            return (
                f"Copy was cancelled. {progress.processed_documents} of "
                f"{progress.total_documents} documents were copied."
            )
        return f"Copying {self.source_name} to {self.target_name}"

    def dismiss(self) -> bool:
        """Close the dialog; refused while the copy is still running."""
        if not self.can_dismiss:
            return False
        self.open = False
        if self.phase == "complete" and self._on_complete_dismiss is not None:
            self._on_complete_dismiss()
        return True


__all__ = ["CopyProgressTracker", "WORKING_PHASES", "TERMINAL_PHASES"]
