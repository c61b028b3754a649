"""Profile, collection and draft-collection routes."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response

from vector_desk.api.dependencies import (
    close_workspace,
    connected_profiles,
    get_app_settings,
    get_workspace,
)
from vector_desk.core.config import Settings
from vector_desk.core.errors import ValidationError
from vector_desk.gateway.embedding_functions import EMBEDDING_FUNCTIONS
from vector_desk.models.dto import (
    CollectionResponse,
    CopyProgressResponse,
    DeleteCollectionRequest,
    DraftCollectionModel,
    DraftCollectionPatch,
    DraftCollectionResponse,
    DraftDocumentModel,
    EmbeddingFunctionResponse,
    ProfileResponse,
    StatusResponse,
)
from vector_desk.models.entities import DraftDocument, HNSWDraft, TypedField
from vector_desk.session.draft_collection import DraftCollectionSession
from vector_desk.session.workspace import Workspace

router = APIRouter()


@router.get("/profiles", response_model=list[ProfileResponse], summary="List configured connection profiles")
async def list_profiles(settings: Settings = Depends(get_app_settings)) -> list[ProfileResponse]:
    connected = set(connected_profiles())
    return [
        ProfileResponse(id=profile.id, name=profile.name, url=profile.url, connected=profile.id in connected)
        for profile in settings.profiles
    ]


@router.post("/profiles/{profile_id}/connect", response_model=StatusResponse, summary="Connect a profile")
async def connect_profile(workspace: Workspace = Depends(get_workspace)) -> StatusResponse:
    await workspace.collections.refresh(force=True)
    return StatusResponse(status="ok")


@router.post("/profiles/{profile_id}/disconnect", response_model=StatusResponse, summary="Disconnect a profile")
async def disconnect_profile(profile_id: str) -> StatusResponse:
    closed = await close_workspace(profile_id)
    return StatusResponse(status="ok" if closed else "noop")


@router.get(
    "/embedding-functions",
    response_model=list[EmbeddingFunctionResponse],
    summary="Embedding functions offered for new collections",
)
async def list_embedding_functions() -> list[EmbeddingFunctionResponse]:
    return [
        EmbeddingFunctionResponse(id=config.id, label=config.label, type=config.type, model_name=config.model_name)
        for config in EMBEDDING_FUNCTIONS
    ]


@router.get(
    "/profiles/{profile_id}/collections",
    response_model=list[CollectionResponse],
    summary="List collections",
)
async def list_collections(
    refresh: bool = False,
    workspace: Workspace = Depends(get_workspace),
) -> list[CollectionResponse]:
    collections = await workspace.collections.refresh(force=refresh)
    if workspace.collections.load_error:
        raise HTTPException(status_code=502, detail=workspace.collections.load_error)
    return [CollectionResponse.from_summary(item) for item in collections]


@router.post(
    "/profiles/{profile_id}/collections/{collection_name}/copy",
    response_model=StatusResponse,
    summary="Copy a collection to the clipboard",
)
async def copy_collection(collection_name: str, workspace: Workspace = Depends(get_workspace)) -> StatusResponse:
    panel = workspace.collections
    await _require_collection(workspace, collection_name)
    panel.select(collection_name)
    panel.copy_active()
    return StatusResponse(status="ok")


@router.post(
    "/profiles/{profile_id}/collections/{collection_name}/duplicate",
    response_model=DraftCollectionResponse,
    summary="Open the copy form for a collection",
)
async def duplicate_collection(
    collection_name: str,
    workspace: Workspace = Depends(get_workspace),
) -> DraftCollectionResponse:
    await _require_collection(workspace, collection_name)
    workspace.collections.select(collection_name)
    workspace.collections.duplicate_active()
    return _draft_response(workspace.collections.draft)


@router.delete(
    "/profiles/{profile_id}/collections/{collection_name}",
    response_model=StatusResponse,
    summary="Delete a collection after typed-name confirmation",
)
async def delete_collection(
    collection_name: str,
    request: DeleteCollectionRequest,
    workspace: Workspace = Depends(get_workspace),
) -> StatusResponse:
    panel = workspace.collections
    await _require_collection(workspace, collection_name)
    panel.request_delete(collection_name)
    panel.type_confirmation(request.confirmation)
    deleted = await panel.confirm_delete()
    if not deleted:
        raise HTTPException(status_code=502, detail=panel.delete_error or "Delete failed")
    return StatusResponse(status="ok")


@router.post(
    "/profiles/{profile_id}/draft-collection",
    response_model=DraftCollectionResponse,
    summary="Start creating a new collection",
)
async def start_collection_draft(workspace: Workspace = Depends(get_workspace)) -> DraftCollectionResponse:
    workspace.collections.new_collection()
    return _draft_response(workspace.collections.draft)


@router.post(
    "/profiles/{profile_id}/draft-collection/paste",
    response_model=DraftCollectionResponse,
    summary="Open the copy form for the collection on the clipboard",
)
async def paste_collection(workspace: Workspace = Depends(get_workspace)) -> DraftCollectionResponse:
    workspace.collections.paste()
    return _draft_response(workspace.collections.draft)


@router.get(
    "/profiles/{profile_id}/draft-collection",
    response_model=DraftCollectionResponse,
    summary="Current collection draft",
)
async def get_collection_draft(workspace: Workspace = Depends(get_workspace)) -> DraftCollectionResponse:
    return _draft_response(workspace.collections.draft)


@router.patch(
    "/profiles/{profile_id}/draft-collection",
    response_model=DraftCollectionResponse,
    summary="Edit the collection draft",
)
async def update_collection_draft(
    patch: DraftCollectionPatch,
    workspace: Workspace = Depends(get_workspace),
) -> DraftCollectionResponse:
    session = workspace.collections.draft
    if session.draft is None:
        raise HTTPException(status_code=404, detail="No collection draft")
    changes = patch.model_dump(exclude_unset=True, exclude={"hnsw", "first_document"})
    if patch.hnsw is not None:
        changes["hnsw"] = HNSWDraft(**patch.hnsw.model_dump())
    if "first_document" in patch.model_fields_set:
        changes["first_document"] = _draft_document(patch.first_document)
    session.update(**changes)
    return _draft_response(session)


@router.delete(
    "/profiles/{profile_id}/draft-collection",
    response_model=StatusResponse,
    summary="Discard the collection draft",
)
async def cancel_collection_draft(workspace: Workspace = Depends(get_workspace)) -> StatusResponse:
    workspace.collections.draft.cancel()
    return StatusResponse(status="ok")


@router.post(
    "/profiles/{profile_id}/draft-collection/save",
    response_model=DraftCollectionResponse,
    summary="Create the drafted collection or start copying",
)
async def save_collection_draft(
    response: Response,
    background_tasks: BackgroundTasks,
    workspace: Workspace = Depends(get_workspace),
) -> DraftCollectionResponse:
    session = workspace.collections.draft
    if session.draft is None:
        raise HTTPException(status_code=404, detail="No collection draft")
    if session.is_copy_mode:
        errors = session.validate()
        if errors:
            session.validation_errors = errors
            field, message = next(iter(errors.items()))
            raise ValidationError(message, field=field)
        # the copy reports progress while it runs; poll /copy-progress
        background_tasks.add_task(session.save)
        response.status_code = 202
        return _draft_response(session)
    await session.save()
    await workspace.collections.refresh()
    return _draft_response(session)


@router.get(
    "/profiles/{profile_id}/copy-progress",
    response_model=CopyProgressResponse,
    summary="Progress of the running collection copy",
)
async def get_copy_progress(workspace: Workspace = Depends(get_workspace)) -> CopyProgressResponse:
    tracker = workspace.collections.draft.copy_progress
    if tracker is None:
        raise HTTPException(status_code=404, detail="No collection copy in progress")
    progress = tracker.progress
    return CopyProgressResponse(
        phase=progress.phase,
        total_documents=progress.total_documents,
        processed_documents=progress.processed_documents,
        percentage=tracker.percentage,
        title=tracker.title,
        description=tracker.description,
        can_cancel=tracker.can_cancel,
        can_dismiss=tracker.can_dismiss,
    )


@router.post(
    "/profiles/{profile_id}/copy-progress/cancel",
    response_model=StatusResponse,
    summary="Cancel the running collection copy",
)
async def cancel_copy(workspace: Workspace = Depends(get_workspace)) -> StatusResponse:
    tracker = workspace.collections.draft.copy_progress
    if tracker is None or not tracker.can_cancel:
        return StatusResponse(status="noop")
    await workspace.collections.draft.cancel_copy()
    return StatusResponse(status="ok")


@router.post(
    "/profiles/{profile_id}/copy-progress/dismiss",
    response_model=StatusResponse,
    summary="Close a finished copy dialog",
)
async def dismiss_copy(workspace: Workspace = Depends(get_workspace)) -> StatusResponse:
    dismissed = workspace.collections.draft.dismiss_copy_progress()
    if dismissed:
        await workspace.collections.refresh()
    return StatusResponse(status="ok" if dismissed else "noop")


async def _require_collection(workspace: Workspace, name: str) -> None:
    panel = workspace.collections
    if panel.get(name) is None:
        await panel.refresh()
    if panel.get(name) is None:
        raise HTTPException(status_code=404, detail="Collection not found")


def _draft_document(model: DraftDocumentModel | None) -> DraftDocument | None:
    if model is None:
        return None
    return DraftDocument(
        id=model.id,
        document=model.document,
        metadata={key: TypedField(value=field.value, type=field.type) for key, field in model.metadata.items()},
    )


def _draft_response(session: DraftCollectionSession) -> DraftCollectionResponse:
    return DraftCollectionResponse(
        draft=DraftCollectionModel.from_draft(session.draft) if session.draft else None,
        validation_errors=session.validation_errors,
        is_creating=session.is_creating,
    )


__all__ = ["router"]
