"""Documents table routes: rows, selection, drafts, deletions and edits."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from vector_desk.api.dependencies import get_documents_view
from vector_desk.models.dto import (
    ClickRequest,
    DocumentResponse,
    DocumentsViewResponse,
    DraftDocumentModel,
    DraftPatchRequest,
    EditChangeRequest,
    EditStartResponse,
    EnterRequest,
    FiltersRequest,
    PressRequest,
    SelectionResponse,
    StatusResponse,
    TypedFieldModel,
)
from vector_desk.models.entities import TypedField
from vector_desk.query.filters import FilterRow, FilterState
from vector_desk.session.documents import DocumentsView
from vector_desk.session.editor import EditingState
from vector_desk.utils.ids import new_id

router = APIRouter(prefix="/profiles/{profile_id}/collections/{collection_name}")


def _selection(view: DocumentsView) -> SelectionResponse:
    selection = view.selection
    return SelectionResponse(
        selected_ids=selection.selected_ids,
        primary_id=selection.primary_id,
        anchor_id=selection.anchor_id,
        detail_open=selection.detail_open,
    )


def _view_response(view: DocumentsView) -> DocumentsViewResponse:
    return DocumentsViewResponse(
        collection_name=view.collection_name,
        rows=[DocumentResponse.from_record(row) for row in view.rows],
        drafts=[DraftDocumentModel.from_draft(draft) for draft in view.drafts.drafts],
        selection=_selection(view),
        marked_for_deletion=view.deletions.ids,
        error=view.drafts.error,
        deletion_error=view.deletions.error,
        load_error=view.load_error,
    )


@router.get("/documents", response_model=DocumentsViewResponse, summary="Rows and table state")
async def get_documents(refresh: bool = False, view: DocumentsView = Depends(get_documents_view)) -> DocumentsViewResponse:
    await view.refresh(force=refresh)
    return _view_response(view)


@router.put("/filters", response_model=DocumentsViewResponse, summary="Replace filter rows and search")
async def set_filters(request: FiltersRequest, view: DocumentsView = Depends(get_documents_view)) -> DocumentsViewResponse:
    rows = [
        FilterRow(
            id=row.id or new_id("flt"),
            type=row.type,
            search_value=row.search_value,
            metadata_key=row.metadata_key,
            operator=row.operator,
            metadata_value=row.metadata_value,
        )
        for row in request.rows
    ]
    view.filters = FilterState(n_results=request.n_results, rows=rows) if rows else FilterState(n_results=request.n_results)
    await view.refresh()
    return _view_response(view)


@router.delete("/filters", response_model=DocumentsViewResponse, summary="Clear all filters")
async def clear_filters(view: DocumentsView = Depends(get_documents_view)) -> DocumentsViewResponse:
    await view.clear_filters()
    return _view_response(view)


# ----------------------------------------------------------------------
# selection


@router.post("/selection/click", response_model=SelectionResponse, summary="Click a row")
async def click_row(request: ClickRequest, view: DocumentsView = Depends(get_documents_view)) -> SelectionResponse:
    if request.row_id not in view.row_ids():
        raise HTTPException(status_code=404, detail="Row not found")
    view.controller.click(request.row_id, toggle=request.toggle, shift=request.shift)
    return _selection(view)


@router.post("/selection/press", response_model=SelectionResponse, summary="Pointer down on a row")
async def press_row(request: PressRequest, view: DocumentsView = Depends(get_documents_view)) -> SelectionResponse:
    _check_index(view, request.row_index)
    view.controller.press(request.row_index, toggle=request.toggle, shift=request.shift, button=request.button)
    return _selection(view)


@router.post("/selection/enter", response_model=SelectionResponse, summary="Pointer entered a row")
async def enter_row(request: EnterRequest, view: DocumentsView = Depends(get_documents_view)) -> SelectionResponse:
    _check_index(view, request.row_index)
    view.controller.enter(request.row_index)
    return _selection(view)


@router.post("/selection/release", response_model=SelectionResponse, summary="Pointer released anywhere")
async def release_pointer(view: DocumentsView = Depends(get_documents_view)) -> SelectionResponse:
    view.controller.release()
    return _selection(view)


@router.post("/selection/all", response_model=SelectionResponse, summary="Select every row")
async def select_all(view: DocumentsView = Depends(get_documents_view)) -> SelectionResponse:
    view.select_all()
    return _selection(view)


@router.delete("/selection", response_model=SelectionResponse, summary="Clear the selection")
async def clear_selection(view: DocumentsView = Depends(get_documents_view)) -> SelectionResponse:
    view.selection.clear()
    return _selection(view)


@router.post("/documents/copy", response_model=StatusResponse, summary="Copy selected documents")
async def copy_documents(view: DocumentsView = Depends(get_documents_view)) -> StatusResponse:
    copied = view.copy_selected()
    return StatusResponse(status="ok" if copied else "noop")


# ----------------------------------------------------------------------
# drafts


@router.post("/drafts", response_model=DocumentsViewResponse, summary="Start a new document draft")
async def new_draft(view: DocumentsView = Depends(get_documents_view)) -> DocumentsViewResponse:
    view.new_document()
    return _view_response(view)


@router.post("/drafts/paste", response_model=DocumentsViewResponse, summary="Paste copied documents as drafts")
async def paste_drafts(view: DocumentsView = Depends(get_documents_view)) -> DocumentsViewResponse:
    view.paste()
    return _view_response(view)


@router.patch("/drafts/{index}", response_model=DocumentsViewResponse, summary="Edit one draft")
async def update_draft(
    index: int,
    patch: DraftPatchRequest,
    view: DocumentsView = Depends(get_documents_view),
) -> DocumentsViewResponse:
    if not 0 <= index < len(view.drafts.drafts):
        raise HTTPException(status_code=404, detail="Draft not found")
    changes = patch.model_dump(exclude_unset=True, exclude_none=True, exclude={"metadata"})
    if patch.metadata is not None:
        changes["metadata"] = {
            key: TypedField(value=field.value, type=field.type) if field is not None else None
            for key, field in patch.metadata.items()
        }
    view.update_draft(index, changes)
    return _view_response(view)


@router.post("/drafts/save", response_model=DocumentsViewResponse, summary="Commit every draft")
async def save_drafts(view: DocumentsView = Depends(get_documents_view)) -> DocumentsViewResponse:
    await view.save_drafts()
    return _view_response(view)


@router.delete("/drafts", response_model=DocumentsViewResponse, summary="Discard every draft")
async def cancel_drafts(view: DocumentsView = Depends(get_documents_view)) -> DocumentsViewResponse:
    view.cancel_drafts()
    return _view_response(view)


# ----------------------------------------------------------------------
# deletions


@router.post("/deletions", response_model=DocumentsViewResponse, summary="Mark selected rows for deletion")
async def mark_for_deletion(view: DocumentsView = Depends(get_documents_view)) -> DocumentsViewResponse:
    view.mark_selected_for_deletion()
    return _view_response(view)


@router.delete("/deletions", response_model=DocumentsViewResponse, summary="Unmark every row")
async def unmark_deletions(view: DocumentsView = Depends(get_documents_view)) -> DocumentsViewResponse:
    view.deletions.clear()
    return _view_response(view)


@router.post("/deletions/commit", response_model=DocumentsViewResponse, summary="Delete every marked row")
async def commit_deletions(view: DocumentsView = Depends(get_documents_view)) -> DocumentsViewResponse:
    await view.commit_deletion()
    return _view_response(view)


# ----------------------------------------------------------------------
# inline edit


@router.post("/edit", response_model=EditStartResponse, summary="Edit the primary selected row")
async def start_edit(view: DocumentsView = Depends(get_documents_view)) -> EditStartResponse:
    if not view.edit_selected() or view.editor.state is None:
        raise HTTPException(status_code=404, detail="No row selected")
    return _edit_response(view.editor.state)


@router.patch("/edit", response_model=EditStartResponse, summary="Change one field of the edited row")
async def change_edit(request: EditChangeRequest, view: DocumentsView = Depends(get_documents_view)) -> EditStartResponse:
    state = view.editor.state
    if state is None:
        raise HTTPException(status_code=404, detail="Not editing")
    view.editor.change(request.field, request.value)
    return _edit_response(state)


@router.post("/edit/save", response_model=StatusResponse, summary="Save the edited row")
async def save_edit(regenerate: bool = False, view: DocumentsView = Depends(get_documents_view)) -> StatusResponse:
    if view.editor.state is None:
        return StatusResponse(status="noop")
    saved = await view.save_edit(regenerate=regenerate)
    if view.editor.error:
        raise HTTPException(status_code=502, detail=view.editor.error)
    return StatusResponse(status="ok" if saved else "noop")


@router.delete("/edit", response_model=StatusResponse, summary="Abandon the edit")
async def cancel_edit(view: DocumentsView = Depends(get_documents_view)) -> StatusResponse:
    view.editor.cancel()
    return StatusResponse(status="ok")


@router.post(
    "/documents/{document_id}/regenerate-embedding",
    response_model=StatusResponse,
    summary="Recompute a document's embedding",
)
async def regenerate(document_id: str, view: DocumentsView = Depends(get_documents_view)) -> StatusResponse:
    await view.regenerate_embedding(document_id)
    return StatusResponse(status="ok")


def _check_index(view: DocumentsView, index: int) -> None:
    if index >= len(view.row_ids()):
        raise HTTPException(status_code=404, detail="Row not found")


def _edit_response(state: EditingState) -> EditStartResponse:
    return EditStartResponse(
        document_id=state.document_id,
        document=state.document,
        metadata=state.metadata,
        fields={key: TypedFieldModel(value=typed.value, type=typed.type) for key, typed in state.fields.items()},
        embedding=state.embedding_text,
        embedding_error=state.embedding_error,
        document_changed=state.document_changed,
    )


__all__ = ["router"]
