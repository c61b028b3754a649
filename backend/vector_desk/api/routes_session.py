"""Menu commands, keyboard shortcuts, clipboard and metrics routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from vector_desk.api.dependencies import get_clipboard, get_workspace
from vector_desk.core.metrics import metrics_response
from vector_desk.models.dto import ClipboardResponse, CommandResponse, ShortcutRequest, StatusResponse
from vector_desk.session.clipboard import Clipboard
from vector_desk.session.commands import SHORTCUTS, AppCommand
from vector_desk.session.workspace import Workspace

router = APIRouter()


def clipboard_response(clipboard: Clipboard) -> ClipboardResponse:
    collection = clipboard.copied_collection
    if collection is not None:
        return ClipboardResponse(
            kind="collection",
            source_profile_id=collection.source_profile_id,
            collection_name=collection.collection.name,
        )
    documents = clipboard.copied_documents
    if documents is not None:
        return ClipboardResponse(
            kind="documents",
            source_profile_id=documents.source_profile_id,
            collection_name=documents.source_collection_name,
            document_ids=[doc.id for doc in documents.documents],
        )
    return ClipboardResponse()


@router.get("/clipboard", response_model=ClipboardResponse, summary="Inspect the clipboard")
async def get_clipboard_state(clipboard: Clipboard = Depends(get_clipboard)) -> ClipboardResponse:
    return clipboard_response(clipboard)


@router.delete("/clipboard", response_model=StatusResponse, summary="Empty the clipboard")
async def clear_clipboard(clipboard: Clipboard = Depends(get_clipboard)) -> StatusResponse:
    clipboard.clear()
    return StatusResponse(status="ok")


@router.post(
    "/profiles/{profile_id}/commands/{command}",
    response_model=CommandResponse,
    summary="Dispatch a menu command",
)
async def run_command(command: str, workspace: Workspace = Depends(get_workspace)) -> CommandResponse:
    try:
        app_command = AppCommand(command)
    except ValueError:
        raise HTTPException(status_code=404, detail="Unknown command") from None
    handled = await workspace.dispatcher.dispatch(app_command)
    return CommandResponse(command=app_command.value, handled=handled)


@router.post(
    "/profiles/{profile_id}/shortcuts",
    response_model=CommandResponse,
    summary="Dispatch a keyboard shortcut",
)
async def run_shortcut(request: ShortcutRequest, workspace: Workspace = Depends(get_workspace)) -> CommandResponse:
    if request.accelerator not in SHORTCUTS:
        raise HTTPException(status_code=404, detail="Unknown shortcut")
    handled = await workspace.dispatcher.dispatch_shortcut(request.accelerator)
    return CommandResponse(command=request.accelerator, handled=handled)


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router", "clipboard_response"]
