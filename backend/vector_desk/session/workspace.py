"""In-memory session of one window connected to one profile."""

from __future__ import annotations

from typing import Callable

from vector_desk.core.logging import get_logger
from vector_desk.query.service import QueryService
from vector_desk.session.clipboard import Clipboard
from vector_desk.session.collections import CollectionsPanel
from vector_desk.session.commands import CommandDispatcher
from vector_desk.session.documents import DocumentsView

logger = get_logger(__name__)


class Workspace:
    """Owns the clipboard, the command dispatcher and the open views.

    Only the documents view of the active collection is subscribed to
    commands; opening another collection swaps the subscription.
    """

    def __init__(
        self,
        service: QueryService,
        profile_id: str,
        clipboard: Clipboard | None = None,
    ) -> None:
        self.service = service
        self.profile_id = profile_id
        self.clipboard = clipboard or Clipboard()
        self.dispatcher = CommandDispatcher()
        self.collections = CollectionsPanel(service, self.clipboard, profile_id)
        self.collections.bind(self.dispatcher)
        self.documents: DocumentsView | None = None
        self._unbind_documents: Callable[[], None] | None = None

    def open_collection(self, name: str) -> DocumentsView:
        if self.documents is not None and self.documents.collection_name == name:
            return self.documents
        self.close_collection()
        view = DocumentsView(
            self.service,
            self.clipboard,
            self.profile_id,
            name,
            n_results=self.service.settings.default_n_results,
        )
        self.documents = view
        self._unbind_documents = view.bind(self.dispatcher)
        self.collections.select(name)
        logger.debug("Opened collection %s", name)
        return view

    def close_collection(self) -> None:
        if self._unbind_documents is not None:
            self._unbind_documents()
        self._unbind_documents = None
        self.documents = None


__all__ = ["Workspace"]
