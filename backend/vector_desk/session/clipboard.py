"""Single-slot clipboard for collections and documents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from vector_desk.core.logging import get_logger
from vector_desk.core.metrics import CLIPBOARD_COPIES
from vector_desk.models.entities import CollectionSummary, DocumentRecord, DocumentSnapshot

logger = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class CopiedCollection:
    collection: CollectionSummary
    source_profile_id: str


@dataclass(slots=True, frozen=True)
class CopiedDocuments:
    documents: tuple[DocumentSnapshot, ...]
    source_collection_name: str
    source_profile_id: str


ClipboardItem = Union[CopiedCollection, CopiedDocuments]


class Clipboard:
    """Holds at most one copied item; the last copy wins."""

    def __init__(self) -> None:
        self.item: ClipboardItem | None = None

    def copy_collection(self, collection: CollectionSummary, profile_id: str) -> None:
        self.item = CopiedCollection(collection=collection, source_profile_id=profile_id)
        CLIPBOARD_COPIES.labels(kind="collection").inc()
        logger.debug("Copied collection %s", collection.name)

    def copy_documents(
        self,
        documents: Iterable[DocumentRecord | DocumentSnapshot],
        collection_name: str,
        profile_id: str,
    ) -> None:
        # Vectors are regenerated by the destination collection on paste.
        snapshots = tuple(
            DocumentSnapshot(id=doc.id, document=doc.document, metadata=dict(doc.metadata) if doc.metadata else None)
            for doc in documents
        )
        self.item = CopiedDocuments(
            documents=snapshots,
            source_collection_name=collection_name,
            source_profile_id=profile_id,
        )
        CLIPBOARD_COPIES.labels(kind="documents").inc()
        logger.debug("Copied %s documents from %s", len(snapshots), collection_name)

    def clear(self) -> None:
        self.item = None

    @property
    def has_copied_collection(self) -> bool:
        return isinstance(self.item, CopiedCollection)

    @property
    def has_copied_documents(self) -> bool:
        return isinstance(self.item, CopiedDocuments)

    @property
    def copied_collection(self) -> CopiedCollection | None:
        return self.item if isinstance(self.item, CopiedCollection) else None

    @property
    def copied_documents(self) -> CopiedDocuments | None:
        return self.item if isinstance(self.item, CopiedDocuments) else None


__all__ = ["Clipboard", "ClipboardItem", "CopiedCollection", "CopiedDocuments"]
