"""Pydantic DTOs exposed via the bridge API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from vector_desk.models.entities import (
    CollectionSummary,
    DocumentRecord,
    DraftCollection,
    DraftDocument,
)

MetadataValueType = Literal["string", "number", "boolean"]
Scalar = str | int | float | bool


class ProfileResponse(BaseModel):
    id: str
    name: str
    url: str
    connected: bool = False


class CollectionResponse(BaseModel):
    name: str
    id: str
    metadata: dict[str, Any] | None = None
    count: int = 0
    dimension: int | None = None
    embedding_function: dict[str, Any] | None = None

    @classmethod
    def from_summary(cls, summary: CollectionSummary) -> "CollectionResponse":
        return cls(
            name=summary.name,
            id=summary.id,
            metadata=summary.metadata,
            count=summary.count,
            dimension=summary.dimension,
            embedding_function=summary.embedding_function,
        )


class DocumentResponse(BaseModel):
    id: str
    document: str | None = None
    metadata: dict[str, Scalar] | None = None
    embedding: list[float] | None = None
    distance: float | None = None

    @classmethod
    def from_record(cls, record: DocumentRecord) -> "DocumentResponse":
        return cls(
            id=record.id,
            document=record.document,
            metadata=record.metadata,
            embedding=record.embedding,
            distance=record.distance,
        )


class TypedFieldModel(BaseModel):
    value: str = ""
    type: MetadataValueType = "string"


class DraftDocumentModel(BaseModel):
    id: str
    document: str = ""
    metadata: dict[str, TypedFieldModel] = Field(default_factory=dict)

    @classmethod
    def from_draft(cls, draft: DraftDocument) -> "DraftDocumentModel":
        return cls(
            id=draft.id,
            document=draft.document,
            metadata={
                key: TypedFieldModel(value=typed.value, type=typed.type)
                for key, typed in draft.metadata.items()
            },
        )


class DraftPatchRequest(BaseModel):
    id: str | None = None
    document: str | None = None
    metadata: dict[str, TypedFieldModel | None] | None = Field(
        default=None,
        description="Per-key merge; null removes the key",
    )


class SelectionResponse(BaseModel):
    selected_ids: list[str]
    primary_id: str | None = None
    anchor_id: str | None = None
    detail_open: bool = False


class ClickRequest(BaseModel):
    row_id: str
    toggle: bool = False
    shift: bool = False


class PressRequest(BaseModel):
    row_index: int = Field(ge=0)
    toggle: bool = False
    shift: bool = False
    button: int = 0


class EnterRequest(BaseModel):
    row_index: int = Field(ge=0)


class FilterRowModel(BaseModel):
    id: str | None = None
    type: Literal["search", "metadata", "id"] = "search"
    search_value: str = ""
    metadata_key: str = ""
    operator: Literal["$eq", "$ne", "$gt", "$gte", "$lt", "$lte", "$in", "$nin"] = "$eq"
    metadata_value: str = ""


class FiltersRequest(BaseModel):
    n_results: int = Field(default=10, ge=1)
    rows: list[FilterRowModel] = Field(default_factory=list)


class DocumentsViewResponse(BaseModel):
    collection_name: str
    rows: list[DocumentResponse]
    drafts: list[DraftDocumentModel]
    selection: SelectionResponse
    marked_for_deletion: list[str]
    error: str | None = None
    deletion_error: str | None = None
    load_error: str | None = None


class EditStartResponse(BaseModel):
    document_id: str
    document: str
    metadata: dict[str, Scalar]
    fields: dict[str, TypedFieldModel] = Field(default_factory=dict)
    embedding: str = ""
    embedding_error: str | None = None
    document_changed: bool = Field(default=False, description="Saving should ask whether to regenerate the embedding")


class EditChangeRequest(BaseModel):
    field: str
    value: str


class HNSWModel(BaseModel):
    space: Literal["l2", "cosine", "ip"] = "l2"
    ef_construction: str = ""
    max_neighbors: str = ""


class DraftCollectionModel(BaseModel):
    name: str
    embedding_function_id: str
    dimension_override: str = ""
    hnsw: HNSWModel = Field(default_factory=HNSWModel)
    first_document: DraftDocumentModel | None = None
    source_collection: str | None = None

    @classmethod
    def from_draft(cls, draft: DraftCollection) -> "DraftCollectionModel":
        return cls(
            name=draft.name,
            embedding_function_id=draft.embedding_function_id,
            dimension_override=draft.dimension_override,
            hnsw=HNSWModel(
                space=draft.hnsw.space,
                ef_construction=draft.hnsw.ef_construction,
                max_neighbors=draft.hnsw.max_neighbors,
            ),
            first_document=DraftDocumentModel.from_draft(draft.first_document) if draft.first_document else None,
            source_collection=draft.source_collection.name if draft.source_collection else None,
        )


class DraftCollectionPatch(BaseModel):
    name: str | None = None
    embedding_function_id: str | None = None
    dimension_override: str | None = None
    hnsw: HNSWModel | None = None
    first_document: DraftDocumentModel | None = None


class DraftCollectionResponse(BaseModel):
    draft: DraftCollectionModel | None = None
    validation_errors: dict[str, str] = Field(default_factory=dict)
    is_creating: bool = False


class CopyProgressResponse(BaseModel):
    phase: Literal["creating", "copying", "complete", "error", "cancelled"]
    total_documents: int
    processed_documents: int
    percentage: int
    title: str
    description: str
    can_cancel: bool
    can_dismiss: bool


class DeleteCollectionRequest(BaseModel):
    confirmation: str = ""


class ClipboardResponse(BaseModel):
    kind: Literal["collection", "documents"] | None = None
    source_profile_id: str | None = None
    collection_name: str | None = None
    document_ids: list[str] = Field(default_factory=list)


class CommandResponse(BaseModel):
    command: str
    handled: bool


class ShortcutRequest(BaseModel):
    accelerator: str


class StatusResponse(BaseModel):
    status: Literal["ok", "noop", "started"]


class EmbeddingFunctionResponse(BaseModel):
    id: str
    label: str
    type: str
    model_name: str | None = None


__all__ = [
    "ProfileResponse",
    "CollectionResponse",
    "DocumentResponse",
    "TypedFieldModel",
    "DraftDocumentModel",
    "DraftPatchRequest",
    "SelectionResponse",
    "ClickRequest",
    "PressRequest",
    "EnterRequest",
    "FilterRowModel",
    "FiltersRequest",
    "DocumentsViewResponse",
    "EditStartResponse",
    "EditChangeRequest",
    "HNSWModel",
    "DraftCollectionModel",
    "DraftCollectionPatch",
    "DraftCollectionResponse",
    "CopyProgressResponse",
    "DeleteCollectionRequest",
    "ClipboardResponse",
    "CommandResponse",
    "ShortcutRequest",
    "StatusResponse",
    "EmbeddingFunctionResponse",
]
