"""ID helpers."""

from __future__ import annotations

import uuid


def new_id(prefix: str | None = None) -> str:
    """Generate a random UUID4 string with optional prefix."""
    base = uuid.uuid4().hex
    return f"{prefix}_{base}" if prefix else base


def new_document_id() -> str:
    """Fresh id for a new document draft."""
    return str(uuid.uuid4())


__all__ = ["new_id", "new_document_id"]
