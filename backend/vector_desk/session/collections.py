"""Collection list, copy/paste of collections and guarded deletion."""

from __future__ import annotations

from typing import Any, Callable

from vector_desk.core.errors import RemoteError
from vector_desk.core.logging import context_logger
from vector_desk.models.entities import CollectionSummary, DraftCollection
from vector_desk.query.service import QueryService
from vector_desk.session.clipboard import Clipboard
from vector_desk.session.commands import AppCommand, CommandDispatcher
from vector_desk.session.deletion import DeleteCollectionGuard
from vector_desk.session.draft_collection import DraftCollectionSession


class CollectionsPanel:
    def __init__(self, service: QueryService, clipboard: Clipboard, profile_id: str) -> None:
        self.service = service
        self.clipboard = clipboard
        self.profile_id = profile_id
        self.collections: list[CollectionSummary] = []
        self.active_name: str | None = None
        self.load_error: str | None = None
        self.pending_delete: DeleteCollectionGuard | None = None
        self.delete_error: str | None = None
        self.draft = DraftCollectionSession(service, profile_id, on_active_change=self.select)
        self.logger = context_logger(__name__, profile=profile_id)

    @property
    def active(self) -> CollectionSummary | None:
        if self.active_name is None:
            return None
        return self.get(self.active_name)

    def get(self, name: str) -> CollectionSummary | None:
        return next((item for item in self.collections if item.name == name), None)

    async def refresh(self, force: bool = False) -> list[CollectionSummary]:
        try:
            self.collections = await self.service.list_collections(self.profile_id, refresh=force)
        except RemoteError as exc:
            self.load_error = exc.message
            self.logger.warning("Listing collections failed: %s", exc.message)
            return self.collections
        self.load_error = None
        if self.active_name is not None and self.get(self.active_name) is None:
            self.active_name = None
        return self.collections

    async def reload(self) -> list[CollectionSummary]:
        return await self.refresh(force=True)

    def select(self, name: str | None) -> None:
        self.active_name = name

    def copy_active(self) -> bool:
        active = self.active
        if active is None:
            return False
        self.clipboard.copy_collection(active, self.profile_id)
        return True

    def paste(self) -> DraftCollection | None:
        """Open the copy form for the collection on the clipboard."""
        copied = self.clipboard.copied_collection
        if copied is None:
            return None
        return self.draft.start_copy_from(copied.collection)

    def new_collection(self) -> DraftCollection:
        return self.draft.start_creation()

    def duplicate_active(self) -> DraftCollection | None:
        active = self.active
        if active is None:
            return None
        return self.draft.start_copy_from(active)

    def request_delete(self, name: str | None = None) -> DeleteCollectionGuard | None:
        target = self.get(name) if name is not None else self.active
        if target is None:
            return None
        self.pending_delete = DeleteCollectionGuard(target.name, target.count)
        self.delete_error = None
        return self.pending_delete

    def request_delete_active(self) -> DeleteCollectionGuard | None:
        return self.request_delete()

    def type_confirmation(self, typed: str) -> bool:
        if self.pending_delete is None:
            return False
        self.pending_delete.typed = typed
        return self.pending_delete.is_confirmed

    def cancel_delete(self) -> None:
        self.pending_delete = None
        self.delete_error = None

    async def confirm_delete(self) -> bool:
        """Raises ``ConfirmationError`` when the typed name does not match."""
        guard = self.pending_delete
        if guard is None:
            return False
        guard.check()
        try:
            await self.service.delete_collection(self.profile_id, guard.collection_name)
        except RemoteError as exc:
            self.delete_error = exc.message
            self.logger.warning("Deleting collection %s failed: %s", guard.collection_name, exc.message)
            return False
        self.logger.info("Deleted collection %s", guard.collection_name)
        self.pending_delete = None
        if self.active_name == guard.collection_name:
            self.active_name = None
        await self.refresh()
        return True

    def bind(self, dispatcher: CommandDispatcher) -> Callable[[], None]:
        handlers: dict[AppCommand, Callable[[], Any]] = {
            AppCommand.NEW_COLLECTION: self.new_collection,
            AppCommand.DUPLICATE_COLLECTION: self.duplicate_active,
            AppCommand.DELETE_COLLECTION: self.request_delete_active,
            AppCommand.COPY_COLLECTION: self.copy_active,
            AppCommand.PASTE_COLLECTION: self.paste,
            AppCommand.REFRESH: self.reload,
        }
        unsubscribers = [dispatcher.subscribe(command, handler) for command, handler in handlers.items()]

        def unbind() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return unbind


__all__ = ["CollectionsPanel"]
