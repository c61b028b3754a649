"""Cached reads and invalidating writes over the vector database gateway."""

from __future__ import annotations

from typing import Sequence

from vector_desk.core.config import Settings
from vector_desk.core.logging import get_logger
from vector_desk.gateway.base import ProgressCallback, VectorStoreGateway
from vector_desk.models.entities import (
    BatchCreateResult,
    CollectionSummary,
    CopyCollectionParams,
    CopyCollectionResult,
    CreateCollectionParams,
    DocumentRecord,
    NewDocument,
    SearchDocumentsParams,
    UpdateDocumentParams,
)
from vector_desk.query.cache import QueryCache, collections_key, documents_key, documents_of_collection

logger = get_logger(__name__)


class QueryService:
    """Every document mutation drops cached searches over the mutated
    collection and the collections list; collection mutations drop only the
    collections list. Invalidation happens after the gateway call returns.
    """

    def __init__(
        self,
        gateway: VectorStoreGateway,
        settings: Settings,
        cache: QueryCache | None = None,
    ) -> None:
        self.gateway = gateway
        self.settings = settings
        self.cache = cache if cache is not None else QueryCache()

    # ------------------------------------------------------------------
    # reads

    async def list_collections(self, profile_id: str, refresh: bool = False) -> list[CollectionSummary]:
        key = collections_key(profile_id)
        if not refresh:
            hit, value = self.cache.get(key)
            if hit:
                return value
        collections = await self.gateway.list_collections(profile_id)
        self.cache.set(key, collections, self.settings.collections_stale_seconds)
        return collections

    async def search_documents(
        self,
        profile_id: str,
        params: SearchDocumentsParams,
        refresh: bool = False,
    ) -> list[DocumentRecord]:
        key = documents_key(profile_id, params)
        if not refresh:
            hit, value = self.cache.get(key)
            if hit:
                return value
        documents = await self.gateway.search_documents(profile_id, params)
        self.cache.set(key, documents, self.settings.documents_stale_seconds)
        return documents

    # ------------------------------------------------------------------
    # document mutations

    async def create_document(
        self,
        profile_id: str,
        collection_name: str,
        document: NewDocument,
        generate_embedding: bool = True,
    ) -> None:
        await self.gateway.create_document(profile_id, collection_name, document, generate_embedding)
        self._documents_changed(profile_id, collection_name)

    async def create_documents_batch(
        self,
        profile_id: str,
        collection_name: str,
        documents: Sequence[NewDocument],
        generate_embeddings: bool = True,
    ) -> BatchCreateResult:
        result = await self.gateway.create_documents_batch(
            profile_id, collection_name, documents, generate_embeddings
        )
        self._documents_changed(profile_id, collection_name)
        return result

    async def update_document(self, profile_id: str, params: UpdateDocumentParams) -> None:
        await self.gateway.update_document(profile_id, params)
        self._documents_changed(profile_id, params.collection_name)

    async def delete_documents(self, profile_id: str, collection_name: str, ids: Sequence[str]) -> None:
        await self.gateway.delete_documents(profile_id, collection_name, ids)
        self._documents_changed(profile_id, collection_name)

    # ------------------------------------------------------------------
    # collection mutations

    async def create_collection(self, profile_id: str, params: CreateCollectionParams) -> CollectionSummary:
        summary = await self.gateway.create_collection(profile_id, params)
        self.invalidate_collections(profile_id)
        return summary

    async def delete_collection(self, profile_id: str, collection_name: str) -> None:
        await self.gateway.delete_collection(profile_id, collection_name)
        self.invalidate_collections(profile_id)

    async def copy_collection(
        self,
        profile_id: str,
        params: CopyCollectionParams,
        on_progress: ProgressCallback,
    ) -> CopyCollectionResult:
        result = await self.gateway.copy_collection(profile_id, params, on_progress)
        # a cancelled or failed copy may still have created the target
        self.invalidate_collections(profile_id)
        return result

    async def cancel_copy(self, profile_id: str) -> None:
        await self.gateway.cancel_copy(profile_id)

    # ------------------------------------------------------------------

    def invalidate_collections(self, profile_id: str) -> None:
        self.cache.invalidate_key(collections_key(profile_id))

    def invalidate_documents(self, profile_id: str, collection_name: str) -> int:
        return self.cache.invalidate(documents_of_collection(profile_id, collection_name))

    def _documents_changed(self, profile_id: str, collection_name: str) -> None:
        dropped = self.invalidate_documents(profile_id, collection_name)
        self.invalidate_collections(profile_id)
        logger.debug("Invalidated %s cached searches for %s", dropped, collection_name)


__all__ = ["QueryService"]
