"""Error taxonomy shared by the session core, query layer and bridge.

Two families matter to callers:

- ``ValidationError``: raised synchronously before any remote call is made.
  It carries the offending ``field`` and, for batch drafts, the 0-based
  ``index`` of the draft that failed.
- ``RemoteError``: anything that went wrong on the far side of the database
  boundary. The message is human readable and is shown to the user as-is.
"""

from __future__ import annotations


class VectorDeskError(Exception):
    """Base class for all application errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(VectorDeskError):
    def __init__(self, message: str, field: str | None = None, index: int | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.index = index


class ConfirmationError(ValidationError):
    """A destructive action was attempted without the required confirmation."""


class RemoteError(VectorDeskError):
    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class NotConnectedError(RemoteError):
    def __init__(self, profile_id: str, operation: str | None = None) -> None:
        super().__init__(
            f"Vector database client not connected for profile {profile_id!r}. Please connect first.",
            operation=operation,
        )
        self.profile_id = profile_id


def error_message(exc: BaseException, fallback: str = "Unknown error") -> str:
    """Return the display string for an exception raised at a mutation boundary."""
    if isinstance(exc, VectorDeskError):
        return exc.message
    text = str(exc)
    return text or fallback


__all__ = [
    "VectorDeskError",
    "ValidationError",
    "ConfirmationError",
    "RemoteError",
    "NotConnectedError",
    "error_message",
]
