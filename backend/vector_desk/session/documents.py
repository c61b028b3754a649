"""State of one open documents table."""

from __future__ import annotations

from typing import Any, Callable, Mapping

from vector_desk.core.errors import RemoteError
from vector_desk.core.logging import context_logger
from vector_desk.models.entities import DocumentRecord, DraftDocument
from vector_desk.query.filters import FilterState
from vector_desk.query.service import QueryService
from vector_desk.session.clipboard import Clipboard
from vector_desk.session.commands import AppCommand, CommandDispatcher
from vector_desk.session.deletion import MarkedForDeletion
from vector_desk.session.drafts import DraftStaging
from vector_desk.session.editor import DocumentEditor, regenerate_embedding
from vector_desk.session.selection import SelectionState, TableSelectionController


class DocumentsView:
    """Rows, selection, drafts, pending deletions and filters of one collection."""

    def __init__(
        self,
        service: QueryService,
        clipboard: Clipboard,
        profile_id: str,
        collection_name: str,
        n_results: int = 10,
    ) -> None:
        self.service = service
        self.clipboard = clipboard
        self.profile_id = profile_id
        self.collection_name = collection_name
        self.rows: list[DocumentRecord] = []
        self.load_error: str | None = None
        self.selection = SelectionState()
        self.controller = TableSelectionController(self.selection, self.row_ids)
        self.deletions = MarkedForDeletion()
        self.drafts = DraftStaging(self.selection, self.deletions)
        self.filters = FilterState(n_results=n_results)
        self.editor = DocumentEditor()
        self.logger = context_logger(__name__, profile=profile_id, collection=collection_name)

    def row_ids(self) -> list[str]:
        """Display order: drafts first, then fetched rows."""
        return self.drafts.draft_ids + [row.id for row in self.rows]

    def get_row(self, row_id: str) -> DocumentRecord | None:
        return next((row for row in self.rows if row.id == row_id), None)

    @property
    def selected_rows(self) -> list[DocumentRecord]:
        by_id = {row.id: row for row in self.rows}
        return [by_id[row_id] for row_id in self.selection.selected_ids if row_id in by_id]

    async def refresh(self, force: bool = False) -> list[DocumentRecord]:
        plan = self.filters.build_search_plan(self.collection_name)
        try:
            records = await self.service.search_documents(self.profile_id, plan.params, refresh=force)
        except RemoteError as exc:
            self.load_error = exc.message
            self.logger.warning("Loading documents failed: %s", exc.message)
            return self.rows
        self.load_error = None
        self.rows = plan.apply(records)
        visible = set(self.row_ids())
        gone = [row_id for row_id in self.selection.selected_ids if row_id not in visible]
        if gone:
            self.selection.discard(gone)
        return self.rows

    async def reload(self) -> list[DocumentRecord]:
        return await self.refresh(force=True)

    def select_all(self) -> None:
        ordered = self.row_ids()
        if ordered:
            self.selection.range_select(ordered, new_anchor=ordered[0])

    def copy_selected(self) -> int:
        rows = self.selected_rows
        if not rows:
            return 0
        self.clipboard.copy_documents(rows, self.collection_name, self.profile_id)
        return len(rows)

    def paste(self) -> list[DraftDocument]:
        return self.drafts.paste(self.clipboard, self.rows)

    def new_document(self) -> DraftDocument | None:
        return self.drafts.start_create()

    def update_draft(self, index: int, patch: Mapping[str, Any]) -> DraftDocument:
        return self.drafts.update_draft_field(index, patch)

    async def save_drafts(self) -> bool:
        saved = await self.drafts.save(self.service, self.profile_id, self.collection_name)
        if saved:
            await self.refresh()
        return saved

    def cancel_drafts(self) -> None:
        self.drafts.cancel()

    def mark_selected_for_deletion(self) -> list[str]:
        """Stage fetched selected rows; drafts are discarded instead of deleted."""
        if self.drafts.is_drafting:
            return []
        ids = [row.id for row in self.selected_rows]
        self.deletions.mark(ids)
        return ids

    async def commit_deletion(self) -> bool:
        deleted = await self.deletions.commit(
            self.service, self.profile_id, self.collection_name, self.selection
        )
        if deleted:
            await self.refresh()
        return deleted

    def edit_selected(self) -> bool:
        primary = self.selection.primary_id
        record = self.get_row(primary) if primary is not None else None
        if record is None:
            return False
        self.editor.start(record)
        return True

    async def save_edit(self, regenerate: bool = False) -> bool:
        saved = await self.editor.save(self.service, self.profile_id, self.collection_name, regenerate=regenerate)
        if saved:
            await self.refresh()
        return saved

    async def regenerate_embedding(self, document_id: str) -> None:
        await regenerate_embedding(self.service, self.profile_id, self.collection_name, document_id)
        await self.refresh()

    async def clear_filters(self) -> list[DocumentRecord]:
        self.filters.clear()
        return await self.refresh()

    def bind(self, dispatcher: CommandDispatcher) -> Callable[[], None]:
        """Subscribe this view to the document commands; returns one unsubscribe."""
        handlers: dict[AppCommand, Callable[[], Any]] = {
            AppCommand.NEW_DOCUMENT: self.new_document,
            AppCommand.EDIT_DOCUMENT: self.edit_selected,
            AppCommand.DELETE_SELECTED: self.mark_selected_for_deletion,
            AppCommand.COPY_DOCUMENTS: self.copy_selected,
            AppCommand.PASTE_DOCUMENTS: self.paste,
            AppCommand.SELECT_ALL_DOCUMENTS: self.select_all,
            AppCommand.CLEAR_FILTERS: self.clear_filters,
            AppCommand.REFRESH: self.reload,
        }
        unsubscribers = [dispatcher.subscribe(command, handler) for command, handler in handlers.items()]

        def unbind() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return unbind


__all__ = ["DocumentsView"]
