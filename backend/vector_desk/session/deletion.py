"""Staged document deletion and the collection delete confirmation guard."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from vector_desk.core.errors import ConfirmationError, RemoteError
from vector_desk.core.logging import get_logger
from vector_desk.query.service import QueryService
from vector_desk.session.selection import SelectionState

logger = get_logger(__name__)


class MarkedForDeletion:
    """Ids staged for a destructive commit. Independent of the selection."""

    def __init__(self) -> None:
        self._ids: dict[str, None] = {}
        self.error: str | None = None
        self.is_deleting = False

    @property
    def ids(self) -> list[str]:
        return list(self._ids)

    @property
    def is_pending(self) -> bool:
        return bool(self._ids)

    def __contains__(self, item: object) -> bool:
        return item in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def mark(self, ids: Iterable[str]) -> None:
        for item in ids:
            self._ids.setdefault(item, None)
        self.error = None

    def unmark(self, ids: Iterable[str]) -> None:
        for item in ids:
            self._ids.pop(item, None)

    def clear(self) -> None:
        self._ids = {}
        self.error = None

    async def commit(
        self,
        service: QueryService,
        profile_id: str,
        collection_name: str,
        selection: SelectionState,
    ) -> bool:
        """Delete every marked id in one call; marks survive a failure."""
        if not self._ids or self.is_deleting:
            return False
        ids = self.ids
        self.is_deleting = True
        try:
            await service.delete_documents(profile_id, collection_name, ids)
        except RemoteError as exc:
            self.error = exc.message
            logger.warning("Deleting %s documents from %s failed: %s", len(ids), collection_name, exc.message)
            return False
        finally:
            self.is_deleting = False
        self.clear()
        selection.clear()
        return True


@dataclass(slots=True)
class DeleteCollectionGuard:
    """Typed exact-name confirmation for deleting a non-empty collection."""

    collection_name: str
    document_count: int
    typed: str = ""

    @property
    def requires_typed_confirmation(self) -> bool:
        return self.document_count > 0

    @property
    def is_confirmed(self) -> bool:
        return not self.requires_typed_confirmation or self.typed == self.collection_name

    def check(self) -> None:
        if not self.is_confirmed:
            raise ConfirmationError(
                f"Type {self.collection_name} to confirm deletion",
                field="confirmation",
            )


__all__ = ["MarkedForDeletion", "DeleteCollectionGuard"]
