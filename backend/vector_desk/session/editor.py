"""Inline editing of a fetched document row."""

from __future__ import annotations

from dataclasses import dataclass, field

import orjson

from vector_desk.core.errors import RemoteError, ValidationError
from vector_desk.core.logging import get_logger
from vector_desk.metadata.codec import coerce_edit_value, native_metadata_to_typed
from vector_desk.models.entities import DocumentRecord, MetadataValue, TypedMetadata, UpdateDocumentParams
from vector_desk.query.service import QueryService

logger = get_logger(__name__)


def format_embedding(embedding: list[float] | None) -> str:
    if not embedding:
        return ""
    return orjson.dumps(embedding).decode("utf-8")


def parse_embedding(raw: str) -> list[float]:
    """Parse a JSON array of numbers, raising ``ValidationError`` otherwise."""
    try:
        parsed = orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise ValidationError("Invalid JSON format", field="embedding") from exc
    if not isinstance(parsed, list) or not all(
        isinstance(item, (int, float)) and not isinstance(item, bool) for item in parsed
    ):
        raise ValidationError("Embedding must be an array of numbers", field="embedding")
    return [float(item) for item in parsed]


@dataclass(slots=True)
class EditingState:
    original: DocumentRecord
    document: str
    metadata: dict[str, MetadataValue] = field(default_factory=dict)
    embedding_text: str = ""
    embedding: list[float] | None = None
    embedding_error: str | None = None

    @property
    def document_id(self) -> str:
        return self.original.id

    @property
    def document_changed(self) -> bool:
        return self.document != (self.original.document or "")

    @property
    def metadata_changed(self) -> bool:
        return self.metadata != (self.original.metadata or {})

    @property
    def embedding_changed(self) -> bool:
        if self.embedding_error is not None:
            return True
        return (self.embedding or None) != (self.original.embedding or None)

    @property
    def fields(self) -> TypedMetadata:
        """Metadata as typed editable fields."""
        return native_metadata_to_typed(self.metadata)


class DocumentEditor:
    def __init__(self) -> None:
        self.state: EditingState | None = None
        self.error: str | None = None
        self.is_saving = False

    def start(self, record: DocumentRecord) -> EditingState:
        embedding = list(record.embedding) if record.embedding else None
        self.state = EditingState(
            original=record,
            document=record.document or "",
            metadata=dict(record.metadata or {}),
            embedding_text=format_embedding(embedding),
            embedding=embedding,
        )
        self.error = None
        return self.state

    def change(self, field_name: str, raw: str) -> None:
        """Edit ``document``, ``embedding`` or a metadata key.

        Metadata keeps its original type when the new text still parses as it.
        """
        if self.state is None:
            return
        if field_name == "document":
            self.state.document = raw
            return
        if field_name == "embedding":
            self.change_embedding(raw)
            return
        original = (self.state.original.metadata or {}).get(field_name)
        self.state.metadata[field_name] = coerce_edit_value(original, raw)

    def change_embedding(self, raw: str) -> None:
        """Take the embedding as JSON text; an unparsable value is kept with an error."""
        state = self.state
        if state is None:
            return
        state.embedding_text = raw
        if not raw.strip():
            state.embedding = None
            state.embedding_error = None
            return
        try:
            state.embedding = parse_embedding(raw)
        except ValidationError as exc:
            state.embedding_error = exc.message
            return
        state.embedding_error = None

    def cancel(self) -> None:
        self.state = None
        self.error = None

    async def save(
        self,
        service: QueryService,
        profile_id: str,
        collection_name: str,
        regenerate: bool = False,
    ) -> bool:
        """Send only what changed. Returns False when nothing was sent or the update failed.

        With ``regenerate`` the vector is recomputed from the saved text and an
        edited embedding is ignored. Otherwise a changed text keeps the stored
        vector unless a new embedding was typed in. An invalid embedding raises
        ``ValidationError`` before any remote call.
        """
        state = self.state
        if state is None or self.is_saving:
            return False
        send_embedding = not regenerate and state.embedding_changed
        if send_embedding and state.embedding_error is not None:
            raise ValidationError(state.embedding_error, field="embedding")
        if not (state.document_changed or state.metadata_changed or send_embedding or regenerate):
            self.state = None
            return False
        params = UpdateDocumentParams(
            collection_name=collection_name,
            document_id=state.document_id,
            document=state.document if state.document_changed else None,
            metadata=state.metadata if state.metadata_changed else None,
            embedding=state.embedding if send_embedding else None,
            regenerate_embedding=regenerate,
        )
        if send_embedding and params.embedding is None:
            raise ValidationError("Embedding must be an array of numbers", field="embedding")
        self.is_saving = True
        try:
            await service.update_document(profile_id, params)
        except RemoteError as exc:
            self.error = exc.message
            logger.warning("Updating %s failed: %s", state.document_id, exc.message)
            return False
        finally:
            self.is_saving = False
        self.state = None
        self.error = None
        return True


async def regenerate_embedding(
    service: QueryService,
    profile_id: str,
    collection_name: str,
    document_id: str,
) -> None:
    """Recompute a stored vector from the document text with the collection's embedding function."""
    await service.update_document(
        profile_id,
        UpdateDocumentParams(
            collection_name=collection_name,
            document_id=document_id,
            regenerate_embedding=True,
        ),
    )


__all__ = ["DocumentEditor", "EditingState", "format_embedding", "parse_embedding", "regenerate_embedding"]
