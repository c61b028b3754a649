"""Internal dataclasses for records, drafts and boundary parameters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

MetadataValueType = Literal["string", "number", "boolean"]
MetadataValue = Union[str, int, float, bool]
CopyPhase = Literal["creating", "copying", "complete", "error", "cancelled"]


@dataclass(slots=True)
class TypedField:
    value: str
    type: MetadataValueType = "string"


TypedMetadata = dict[str, TypedField]


@dataclass(slots=True, frozen=True)
class DocumentRecord:
    """A fetched row. Never mutated; edits go through drafts."""

    id: str
    document: str | None = None
    metadata: dict[str, MetadataValue] | None = None
    embedding: list[float] | None = None
    distance: float | None = None


@dataclass(slots=True, frozen=True)
class DocumentSnapshot:
    """A copied document. Embeddings are never carried."""

    id: str
    document: str | None
    metadata: dict[str, MetadataValue] | None


@dataclass(slots=True, frozen=True)
class CollectionSummary:
    name: str
    id: str
    metadata: dict[str, Any] | None = None
    count: int = 0
    dimension: int | None = None
    embedding_function: dict[str, Any] | None = None


@dataclass(slots=True)
class DraftDocument:
    id: str
    document: str = ""
    metadata: TypedMetadata = field(default_factory=dict)


@dataclass(slots=True)
class HNSWDraft:
    space: Literal["l2", "cosine", "ip"] = "l2"
    ef_construction: str = ""
    max_neighbors: str = ""


@dataclass(slots=True)
class DraftCollection:
    name: str
    embedding_function_id: str
    dimension_override: str = ""
    hnsw: HNSWDraft = field(default_factory=HNSWDraft)
    first_document: DraftDocument | None = None
    source_collection: CollectionSummary | None = None

    @property
    def is_copy(self) -> bool:
        return self.source_collection is not None


@dataclass(slots=True)
class HNSWConfig:
    space: Literal["l2", "cosine", "ip"] | None = None
    ef_construction: int | None = None
    max_neighbors: int | None = None

    def is_empty(self) -> bool:
        return self.space is None and self.ef_construction is None and self.max_neighbors is None


@dataclass(slots=True)
class EmbeddingFunctionSpec:
    type: str
    model_name: str | None = None
    url: str | None = None
    account_id: str | None = None


@dataclass(slots=True)
class SearchDocumentsParams:
    collection_name: str
    query_text: str | None = None
    n_results: int = 10
    metadata_filter: dict[str, Any] | None = None
    limit: int | None = None
    offset: int | None = None


@dataclass(slots=True)
class NewDocument:
    id: str
    document: str | None = None
    metadata: dict[str, MetadataValue] | None = None
    embedding: list[float] | None = None


@dataclass(slots=True)
class UpdateDocumentParams:
    collection_name: str
    document_id: str
    document: str | None = None
    metadata: dict[str, MetadataValue] | None = None
    embedding: list[float] | None = None
    regenerate_embedding: bool = False


@dataclass(slots=True)
class CreateCollectionParams:
    name: str
    embedding_function: EmbeddingFunctionSpec | None = None
    hnsw: HNSWConfig | None = None
    dimension: int | None = None
    first_document: NewDocument | None = None


@dataclass(slots=True)
class CopyCollectionParams:
    source_collection_name: str
    target_name: str
    embedding_function: EmbeddingFunctionSpec | None = None
    hnsw: HNSWConfig | None = None
    regenerate_embeddings: bool = True


@dataclass(slots=True)
class CopyProgress:
    phase: CopyPhase
    total_documents: int = 0
    processed_documents: int = 0
    message: str = ""


@dataclass(slots=True)
class CopyCollectionResult:
    success: bool
    total_documents: int = 0
    copied_documents: int = 0
    error: str | None = None


@dataclass(slots=True)
class BatchCreateResult:
    created_ids: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


__all__ = [
    "MetadataValueType",
    "MetadataValue",
    "CopyPhase",
    "TypedField",
    "TypedMetadata",
    "DocumentRecord",
    "DocumentSnapshot",
    "CollectionSummary",
    "DraftDocument",
    "HNSWDraft",
    "DraftCollection",
    "HNSWConfig",
    "EmbeddingFunctionSpec",
    "SearchDocumentsParams",
    "NewDocument",
    "UpdateDocumentParams",
    "CreateCollectionParams",
    "CopyCollectionParams",
    "CopyProgress",
    "CopyCollectionResult",
    "BatchCreateResult",
]
