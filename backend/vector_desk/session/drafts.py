"""Unsaved document drafts rendered inline with fetched rows.

A view is either empty or drafting: one draft after "new document", or one
draft per pasted document. Drafts are committed together or discarded
together.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from vector_desk.core.errors import RemoteError, ValidationError
from vector_desk.core.logging import get_logger
from vector_desk.core.metrics import PASTED_DOCUMENTS
from vector_desk.metadata.codec import (
    classify,
    collection_type_hints,
    format_metadata_value,
    typed_metadata_to_chroma_format,
    validate_typed_metadata,
)
from vector_desk.models.entities import (
    DocumentRecord,
    DraftDocument,
    MetadataValueType,
    NewDocument,
    TypedField,
)
from vector_desk.query.service import QueryService
from vector_desk.session.clipboard import Clipboard
from vector_desk.session.deletion import MarkedForDeletion
from vector_desk.session.selection import SelectionState
from vector_desk.utils.ids import new_document_id

logger = get_logger(__name__)


def resolve_paste_id(original: str, used: set[str]) -> str:
    """Return ``original`` or the first free ``-copy`` / ``-copy-N`` variant."""
    if original not in used:
        return original
    candidate = f"{original}-copy"
    counter = 2
    while candidate in used:
        candidate = f"{original}-copy-{counter}"
        counter += 1
    return candidate


def validate_draft(draft: DraftDocument, position: int) -> None:
    """Raise ``ValidationError`` for the first problem in one draft (1-based position)."""
    prefix = f"Document {position}"
    if not draft.id.strip():
        raise ValidationError(f"{prefix}: ID is required", field="id", index=position - 1)
    if not draft.document.strip():
        raise ValidationError(f"{prefix}: Document text is required", field="document", index=position - 1)
    invalid = validate_typed_metadata(draft.metadata)
    if invalid:
        key, error = invalid
        raise ValidationError(f"{prefix}: {key}: {error}", field=f"metadata.{key}", index=position - 1)


def draft_to_new_document(draft: DraftDocument) -> NewDocument:
    return NewDocument(
        id=draft.id.strip(),
        document=draft.document,
        metadata=typed_metadata_to_chroma_format(draft.metadata),
    )


class DraftStaging:
    def __init__(self, selection: SelectionState, deletions: MarkedForDeletion) -> None:
        self.selection = selection
        self.deletions = deletions
        self.drafts: list[DraftDocument] = []
        self.error: str | None = None
        self.validation_error: ValidationError | None = None
        self.is_saving = False

    @property
    def is_drafting(self) -> bool:
        return bool(self.drafts)

    @property
    def draft_ids(self) -> list[str]:
        return [draft.id for draft in self.drafts]

    def _clear_errors(self) -> None:
        self.error = None
        self.validation_error = None

    def start_create(self) -> DraftDocument | None:
        if self.drafts or self.deletions.is_pending:
            return None
        draft = DraftDocument(id=new_document_id())
        self.drafts = [draft]
        self._clear_errors()
        self.selection.select_single(draft.id)
        return draft

    def update_draft_field(self, index: int, patch: Mapping[str, Any]) -> DraftDocument:
        """Merge ``patch`` into one draft; ``metadata`` entries merge key by key.

        A ``None`` id or document leaves the field as it is.
        """
        draft = self.drafts[index]
        old_id = draft.id
        if patch.get("id") is not None:
            draft.id = patch["id"]
        if patch.get("document") is not None:
            draft.document = patch["document"]
        if patch.get("metadata"):
            for key, value in patch["metadata"].items():
                if value is None:
                    draft.metadata.pop(key, None)
                elif isinstance(value, TypedField):
                    draft.metadata[key] = value
                else:
                    draft.metadata[key] = TypedField(value=value["value"], type=value.get("type", "string"))
        if draft.id != old_id and old_id in self.selection:
            self.selection.discard([old_id])
            self.selection.add_range([draft.id])
        self._clear_errors()
        return draft

    def cancel(self) -> None:
        self.drafts = []
        self._clear_errors()
        self.selection.clear()

    async def save(self, service: QueryService, profile_id: str, collection_name: str) -> bool:
        """Commit every draft.

        Raises ``ValidationError`` before any remote call when a draft is
        invalid. A remote failure is kept in ``error`` and the drafts are
        preserved for correction.
        """
        if not self.drafts or self.is_saving:
            return False
        for position, draft in enumerate(self.drafts, start=1):
            try:
                validate_draft(draft, position)
            except ValidationError as exc:
                self.validation_error = exc
                raise
        documents = [draft_to_new_document(draft) for draft in self.drafts]
        self.is_saving = True
        self._clear_errors()
        try:
            if len(documents) == 1:
                await service.create_document(profile_id, collection_name, documents[0], generate_embedding=True)
            else:
                result = await service.create_documents_batch(
                    profile_id, collection_name, documents, generate_embeddings=True
                )
                if result.errors:
                    raise RemoteError("; ".join(result.errors), operation="create_documents_batch")
        except RemoteError as exc:
            self.error = exc.message
            logger.warning("Saving %s drafts to %s failed: %s", len(documents), collection_name, exc.message)
            return False
        finally:
            self.is_saving = False
        logger.info("Saved %s drafts to %s", len(documents), collection_name)
        self.drafts = []
        self.selection.clear()
        return True

    def paste(self, clipboard: Clipboard, rows: Sequence[DocumentRecord]) -> list[DraftDocument]:
        """Stage copied documents as drafts against the currently visible rows."""
        copied = clipboard.copied_documents
        if self.drafts or copied is None or not copied.documents:
            return []
        used = {row.id for row in rows}
        hints = collection_type_hints(rows)
        drafts: list[DraftDocument] = []
        for snapshot in copied.documents:
            draft_id = resolve_paste_id(snapshot.id, used)
            used.add(draft_id)
            drafts.append(
                DraftDocument(
                    id=draft_id,
                    document=snapshot.document or "",
                    metadata=_reconcile_metadata(snapshot.metadata or {}, hints),
                )
            )
        self.drafts = drafts
        self._clear_errors()
        self.selection.range_select([draft.id for draft in drafts], new_anchor=drafts[0].id)
        PASTED_DOCUMENTS.inc(len(drafts))
        logger.info("Pasted %s documents from %s", len(drafts), copied.source_collection_name)
        return drafts


def _reconcile_metadata(
    metadata: Mapping[str, Any],
    hints: Mapping[str, MetadataValueType],
) -> dict[str, TypedField]:
    typed: dict[str, TypedField] = {}
    for key, value in metadata.items():
        established = hints.get(key)
        actual = classify(value)
        if established is not None and established != actual:
            # mismatched values are dropped so the user reviews them
            typed[key] = TypedField(value="", type=established)
        else:
            typed[key] = TypedField(value=format_metadata_value(value), type=actual)
    for key, established in hints.items():
        if key not in typed:
            typed[key] = TypedField(value="", type=established)
    return typed


__all__ = [
    "DraftStaging",
    "resolve_paste_id",
    "validate_draft",
    "draft_to_new_document",
]
