"""Creating a new collection, or copying an existing one, from a draft form."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable

from vector_desk.core.errors import RemoteError, ValidationError
from vector_desk.core.logging import get_logger
from vector_desk.gateway.embedding_functions import (
    DEFAULT_EMBEDDING_FUNCTION,
    EmbeddingFunctionConfig,
    get_embedding_function,
    match_collection_embedding,
)
from vector_desk.metadata.codec import typed_metadata_to_chroma_format, validate_typed_metadata
from vector_desk.models.entities import (
    CollectionSummary,
    CopyCollectionParams,
    CopyProgress,
    CreateCollectionParams,
    DraftCollection,
    HNSWConfig,
    HNSWDraft,
    NewDocument,
)
from vector_desk.query.service import QueryService
from vector_desk.session.copy_progress import CopyProgressTracker

logger = get_logger(__name__)

CollectionCallback = Callable[[str | None], None]


def _positive_int(raw: str) -> int | None:
    raw = raw.strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def build_hnsw_config(hnsw: HNSWDraft) -> HNSWConfig | None:
    """Only non-default values are sent; unparseable numbers are ignored."""
    config = HNSWConfig(
        space=hnsw.space if hnsw.space != "l2" else None,
        ef_construction=_positive_int(hnsw.ef_construction),
        max_neighbors=_positive_int(hnsw.max_neighbors),
    )
    return None if config.is_empty() else config


def hnsw_from_collection(collection: CollectionSummary) -> HNSWDraft:
    hnsw = HNSWDraft()
    metadata = collection.metadata or {}
    if metadata.get("hnsw:space"):
        hnsw.space = metadata["hnsw:space"]
    if metadata.get("hnsw:construction_ef") is not None:
        hnsw.ef_construction = str(metadata["hnsw:construction_ef"])
    if metadata.get("hnsw:M") is not None:
        hnsw.max_neighbors = str(metadata["hnsw:M"])
    return hnsw


class DraftCollectionSession:
    def __init__(
        self,
        service: QueryService,
        profile_id: str,
        on_active_change: CollectionCallback | None = None,
    ) -> None:
        self.service = service
        self.profile_id = profile_id
        self.draft: DraftCollection | None = None
        self.validation_errors: dict[str, str] = {}
        self.is_creating = False
        self.copy_progress: CopyProgressTracker | None = None
        self._on_active_change = on_active_change

    @property
    def is_copy_mode(self) -> bool:
        return self.draft is not None and self.draft.is_copy

    def _set_active(self, name: str | None) -> None:
        if self._on_active_change is not None:
            self._on_active_change(name)

    def start_creation(self) -> DraftCollection:
        self.draft = DraftCollection(name="", embedding_function_id=DEFAULT_EMBEDDING_FUNCTION.id)
        self.validation_errors = {}
        self._set_active(None)
        return self.draft

    def start_copy_from(self, collection: CollectionSummary) -> DraftCollection:
        self.draft = DraftCollection(
            name=f"{collection.name}-copy",
            embedding_function_id=match_collection_embedding(collection),
            hnsw=hnsw_from_collection(collection),
            source_collection=collection,
        )
        self.validation_errors = {}
        self._set_active(None)
        return self.draft

    def update(self, **changes: Any) -> DraftCollection | None:
        if self.draft is None:
            return None
        self.draft = replace(self.draft, **changes)
        if "name" in changes:
            self.validation_errors.pop("name", None)
        return self.draft

    def cancel(self) -> None:
        self.draft = None
        self.validation_errors = {}

    def validate(self) -> dict[str, str]:
        errors: dict[str, str] = {}
        draft = self.draft
        if draft is None:
            return errors
        if not draft.name.strip():
            errors["name"] = "Collection name is required"
        if draft.first_document is not None:
            invalid = validate_typed_metadata(draft.first_document.metadata)
            if invalid:
                key, error = invalid
                errors[f"metadata.{key}"] = f"{key}: {error}"
        return errors

    async def save(self) -> bool:
        """Create or copy. Raises ``ValidationError`` when the form is invalid."""
        draft = self.draft
        if draft is None or self.is_creating:
            return False
        errors = self.validate()
        if errors:
            self.validation_errors = errors
            field, message = next(iter(errors.items()))
            raise ValidationError(message, field=field)
        embedding = get_embedding_function(draft.embedding_function_id) or DEFAULT_EMBEDDING_FUNCTION
        self.is_creating = True
        try:
            if draft.source_collection is not None:
                return await self._copy(draft, draft.source_collection, embedding)
            params = CreateCollectionParams(
                name=draft.name.strip(),
                embedding_function=embedding.to_spec(),
                hnsw=build_hnsw_config(draft.hnsw),
                dimension=_positive_int(draft.dimension_override),
            )
            first = draft.first_document
            if first is not None and first.id.strip():
                params.first_document = NewDocument(
                    id=first.id.strip(),
                    document=first.document or None,
                    metadata=typed_metadata_to_chroma_format(first.metadata),
                )
            await self.service.create_collection(self.profile_id, params)
        except RemoteError as exc:
            self.validation_errors = {"_form": exc.message}
            tracker = self.copy_progress
            if draft.is_copy and tracker is not None and not tracker.is_terminal:
                tracker.update(CopyProgress(phase="error", message=exc.message))
            logger.warning("Creating collection %s failed: %s", draft.name, exc.message)
            return False
        finally:
            self.is_creating = False
        name = draft.name.strip()
        self.draft = None
        self.validation_errors = {}
        self._set_active(name)
        return True

    async def _copy(
        self,
        draft: DraftCollection,
        source: CollectionSummary,
        embedding: EmbeddingFunctionConfig,
    ) -> bool:
        target = draft.name.strip()
        tracker = CopyProgressTracker(source.name, target, on_complete_dismiss=self._finish_copy)
        self.copy_progress = tracker
        params = CopyCollectionParams(
            source_collection_name=source.name,
            target_name=target,
            embedding_function=embedding.to_spec(),
            hnsw=build_hnsw_config(draft.hnsw),
            regenerate_embeddings=embedding.id != match_collection_embedding(source),
        )
        result = await self.service.copy_collection(self.profile_id, params, tracker.update)
        if not result.success and result.error and not tracker.is_terminal:
            tracker.update(replace(tracker.progress, phase="error", message=result.error))
        return result.success

    def _finish_copy(self) -> None:
        name = self.draft.name.strip() if self.draft else None
        self.draft = None
        self.validation_errors = {}
        self.copy_progress = None
        self._set_active(name)

    async def cancel_copy(self) -> None:
        if self.copy_progress is not None and self.copy_progress.can_cancel:
            await self.service.cancel_copy(self.profile_id)

    def dismiss_copy_progress(self) -> bool:
        tracker = self.copy_progress
        if tracker is None or not tracker.dismiss():
            return False
        if self.copy_progress is tracker:
            self.copy_progress = None
        return True


__all__ = [
    "DraftCollectionSession",
    "build_hnsw_config",
    "hnsw_from_collection",
]
