"""Chroma implementation of the vector database boundary."""

from __future__ import annotations

import asyncio
from typing import Any, Sequence
from urllib.parse import urlparse

import chromadb

from vector_desk.core.config import ConnectionProfile, Settings
from vector_desk.core.errors import NotConnectedError, error_message
from vector_desk.core.logging import get_logger
from vector_desk.gateway.base import ProgressCallback, remote_call
from vector_desk.gateway.embedding_functions import build_embedding_function
from vector_desk.models.entities import (
    BatchCreateResult,
    CollectionSummary,
    CopyCollectionParams,
    CopyCollectionResult,
    CopyProgress,
    CreateCollectionParams,
    DocumentRecord,
    EmbeddingFunctionSpec,
    HNSWConfig,
    NewDocument,
    SearchDocumentsParams,
    UpdateDocumentParams,
)

logger = get_logger(__name__)


class ChromaGateway:
    """One async Chroma HTTP client per connection profile."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._clients: dict[str, Any] = {}
        self._profiles: dict[str, ConnectionProfile] = {}
        self._cancel_events: dict[str, asyncio.Event] = {}

    # ------------------------------------------------------------------
    # connection management

    async def connect(self, profile: ConnectionProfile) -> None:
        parsed = urlparse(profile.url)
        ssl = parsed.scheme == "https"
        kwargs: dict[str, Any] = {
            "host": parsed.hostname or "localhost",
            "port": parsed.port or (443 if ssl else 8000),
            "ssl": ssl,
        }
        if profile.api_key:
            kwargs["headers"] = {"x-chroma-token": profile.api_key}
        if profile.tenant:
            kwargs["tenant"] = profile.tenant
        if profile.database:
            kwargs["database"] = profile.database
        async with remote_call("connect"):
            client = await chromadb.AsyncHttpClient(**kwargs)
            await client.heartbeat()
        self._clients[profile.id] = client
        self._profiles[profile.id] = profile
        logger.info("Connected profile %s to %s", profile.id, profile.url)

    async def disconnect(self, profile_id: str) -> None:
        self._clients.pop(profile_id, None)
        self._profiles.pop(profile_id, None)
        logger.info("Disconnected profile %s", profile_id)

    def _client(self, profile_id: str, operation: str) -> Any:
        client = self._clients.get(profile_id)
        if client is None:
            raise NotConnectedError(profile_id, operation=operation)
        return client

    def _embedding_override(self, profile_id: str, collection_name: str) -> Any:
        profile = self._profiles.get(profile_id)
        if profile is None:
            return None
        override = profile.embedding_overrides.get(collection_name)
        if override is None:
            return None
        return build_embedding_function(
            EmbeddingFunctionSpec(type=override.type, model_name=override.model_name, url=override.url)
        )

    async def _get_collection(self, profile_id: str, name: str, operation: str) -> Any:
        client = self._client(profile_id, operation)
        embedding_function = self._embedding_override(profile_id, name)
        if embedding_function is None:
            return await client.get_collection(name=name)
        return await client.get_collection(name=name, embedding_function=embedding_function)

    # ------------------------------------------------------------------
    # collections

    async def list_collections(self, profile_id: str) -> list[CollectionSummary]:
        client = self._client(profile_id, "list_collections")
        async with remote_call("list_collections"):
            collections = await client.list_collections()
            summaries = [await _summarize(collection) for collection in collections]
        logger.debug("Listed %s collections for %s", len(summaries), profile_id)
        return summaries

    async def create_collection(self, profile_id: str, params: CreateCollectionParams) -> CollectionSummary:
        client = self._client(profile_id, "create_collection")
        metadata = _hnsw_metadata(params.hnsw)
        async with remote_call("create_collection"):
            collection = await client.create_collection(
                name=params.name,
                metadata=metadata or None,
                embedding_function=build_embedding_function(params.embedding_function),
            )
            if params.first_document is not None:
                await _add(collection, [params.first_document], include_embeddings=False)
            summary = await _summarize(collection)
        logger.info("Created collection %s", params.name)
        return summary

    async def delete_collection(self, profile_id: str, collection_name: str) -> None:
        client = self._client(profile_id, "delete_collection")
        async with remote_call("delete_collection"):
            await client.delete_collection(name=collection_name)
        logger.info("Deleted collection %s", collection_name)

    async def copy_collection(
        self,
        profile_id: str,
        params: CopyCollectionParams,
        on_progress: ProgressCallback,
    ) -> CopyCollectionResult:
        client = self._client(profile_id, "copy_collection")
        cancel = asyncio.Event()
        self._cancel_events[profile_id] = cancel
        total = 0
        copied = 0
        try:
            on_progress(CopyProgress(phase="creating", message="Creating collection..."))
            source = await self._get_collection(profile_id, params.source_collection_name, "copy_collection")
            total = await source.count()
            target = await client.create_collection(
                name=params.target_name,
                metadata=_hnsw_metadata(params.hnsw) or None,
                embedding_function=build_embedding_function(params.embedding_function),
            )
            on_progress(CopyProgress("copying", total, 0, f"Copying 0 of {total} documents"))
            include = ["documents", "metadatas"]
            if not params.regenerate_embeddings:
                include.append("embeddings")
            while copied < total:
                if cancel.is_set():
                    on_progress(CopyProgress("cancelled", total, copied, "Copy cancelled"))
                    logger.info("Copy of %s cancelled after %s documents", params.source_collection_name, copied)
                    return CopyCollectionResult(False, total, copied, "Copy cancelled")
                batch = await source.get(limit=self.settings.copy_batch_size, offset=copied, include=include)
                ids = list(batch["ids"])
                if not ids:
                    break
                await target.add(
                    ids=ids,
                    documents=[text or "" for text in batch["documents"]],
                    metadatas=_optional_list(batch.get("metadatas")),
                    embeddings=None if params.regenerate_embeddings else _float_rows(batch.get("embeddings")),
                )
                copied += len(ids)
                on_progress(CopyProgress("copying", total, copied, f"Copying {copied} of {total} documents"))
        except Exception as exc:
            message = error_message(exc, "Failed to copy collection")
            logger.exception("Copy of %s failed: %s", params.source_collection_name, message)
            on_progress(CopyProgress("error", total, copied, message))
            return CopyCollectionResult(False, total, copied, message)
        finally:
            self._cancel_events.pop(profile_id, None)
        on_progress(CopyProgress("complete", total, copied, "Copy complete"))
        logger.info("Copied %s documents into %s", copied, params.target_name)
        return CopyCollectionResult(True, total, copied)

    async def cancel_copy(self, profile_id: str) -> None:
        event = self._cancel_events.get(profile_id)
        if event is not None:
            event.set()

    # ------------------------------------------------------------------
    # documents

    async def search_documents(self, profile_id: str, params: SearchDocumentsParams) -> list[DocumentRecord]:
        async with remote_call("search_documents"):
            collection = await self._get_collection(profile_id, params.collection_name, "search_documents")
            if params.query_text and params.query_text.strip():
                results = await collection.query(
                    query_texts=[params.query_text],
                    n_results=params.n_results,
                    where=params.metadata_filter or None,
                    include=["documents", "metadatas", "embeddings", "distances"],
                )
                return _records_from_query(results)
            results = await collection.get(
                where=params.metadata_filter or None,
                limit=params.limit or self.settings.list_limit,
                offset=params.offset or 0,
                include=["documents", "metadatas", "embeddings"],
            )
            return _records_from_get(results)

    async def create_document(
        self,
        profile_id: str,
        collection_name: str,
        document: NewDocument,
        generate_embedding: bool = True,
    ) -> None:
        async with remote_call("create_document"):
            collection = await self._get_collection(profile_id, collection_name, "create_document")
            await _add(collection, [document], include_embeddings=not generate_embedding)
        logger.info("Created document %s in %s", document.id, collection_name)

    async def create_documents_batch(
        self,
        profile_id: str,
        collection_name: str,
        documents: Sequence[NewDocument],
        generate_embeddings: bool = True,
    ) -> BatchCreateResult:
        result = BatchCreateResult()
        batch_size = self.settings.copy_batch_size
        async with remote_call("create_documents_batch"):
            collection = await self._get_collection(profile_id, collection_name, "create_documents_batch")
        for number, start in enumerate(range(0, len(documents), batch_size), start=1):
            batch = list(documents[start : start + batch_size])
            try:
                async with remote_call("create_documents_batch"):
                    await _add(collection, batch, include_embeddings=not generate_embeddings)
            except Exception as exc:
                result.errors.append(f"Batch {number}: {error_message(exc)}")
                continue
            result.created_ids.extend(doc.id for doc in batch)
        logger.info(
            "Created %s documents in %s (%s failed batches)",
            len(result.created_ids),
            collection_name,
            len(result.errors),
        )
        return result

    async def update_document(self, profile_id: str, params: UpdateDocumentParams) -> None:
        async with remote_call("update_document"):
            collection = await self._get_collection(profile_id, params.collection_name, "update_document")
            kwargs: dict[str, Any] = {"ids": [params.document_id]}
            if params.metadata is not None:
                kwargs["metadatas"] = [params.metadata]
            if params.embedding is not None:
                kwargs["embeddings"] = [params.embedding]
            if params.document is not None:
                kwargs["documents"] = [params.document]
            if params.regenerate_embedding and params.embedding is None and params.document is None:
                # Chroma re-embeds whenever documents are written without vectors.
                existing = await collection.get(ids=[params.document_id], include=["documents"])
                kwargs["documents"] = [(existing["documents"] or [""])[0] or ""]
            elif params.document is not None and params.embedding is None and not params.regenerate_embedding:
                existing = await collection.get(ids=[params.document_id], include=["embeddings"])
                rows = _float_rows(existing.get("embeddings"))
                if rows:
                    kwargs["embeddings"] = [rows[0]]
            await collection.update(**kwargs)
        logger.info("Updated document %s in %s", params.document_id, params.collection_name)

    async def delete_documents(self, profile_id: str, collection_name: str, ids: Sequence[str]) -> None:
        async with remote_call("delete_documents"):
            collection = await self._get_collection(profile_id, collection_name, "delete_documents")
            await collection.delete(ids=list(ids))
        logger.info("Deleted %s documents from %s", len(ids), collection_name)


async def _summarize(collection: Any) -> CollectionSummary:
    count = await collection.count()
    config = getattr(collection, "configuration_json", None) or {}
    ef_config = config.get("embedding_function")
    embedding_function: dict[str, Any] | None = None
    if ef_config:
        kind = ef_config.get("type")
        if kind == "known":
            embedding_function = {"name": ef_config.get("name"), "type": "known", "config": ef_config.get("config")}
        elif kind == "legacy":
            embedding_function = {"name": "legacy", "type": "legacy"}
        else:
            embedding_function = {"name": "unknown", "type": "unknown"}
    return CollectionSummary(
        name=collection.name,
        id=str(collection.id),
        metadata=dict(collection.metadata) if collection.metadata else None,
        count=count,
        embedding_function=embedding_function,
    )


def _hnsw_metadata(hnsw: HNSWConfig | None) -> dict[str, Any]:
    metadata: dict[str, Any] = {}
    if hnsw is None:
        return metadata
    if hnsw.space is not None:
        metadata["hnsw:space"] = hnsw.space
    if hnsw.ef_construction is not None:
        metadata["hnsw:construction_ef"] = hnsw.ef_construction
    if hnsw.max_neighbors is not None:
        metadata["hnsw:M"] = hnsw.max_neighbors
    return metadata


async def _add(collection: Any, documents: Sequence[NewDocument], include_embeddings: bool) -> None:
    await collection.add(
        ids=[doc.id for doc in documents],
        documents=[doc.document or "" for doc in documents],
        metadatas=_optional_list([doc.metadata for doc in documents]),
        embeddings=[doc.embedding for doc in documents] if include_embeddings else None,
    )


def _optional_list(values: Sequence[Any] | None) -> list[Any] | None:
    if values is None or not any(values):
        return None
    return list(values)


def _float_rows(rows: Any) -> list[list[float]] | None:
    if rows is None:
        return None
    return [[float(value) for value in row] for row in rows]


def _records_from_query(results: Any) -> list[DocumentRecord]:
    ids = (results.get("ids") or [[]])[0]
    documents = (results.get("documents") or [[None] * len(ids)])[0]
    metadatas = (results.get("metadatas") or [[None] * len(ids)])[0]
    embeddings = _first_row(results.get("embeddings"), len(ids))
    distances = (results.get("distances") or [[None] * len(ids)])[0]
    return [
        DocumentRecord(
            id=doc_id,
            document=documents[idx],
            metadata=dict(metadatas[idx]) if metadatas[idx] else None,
            embedding=embeddings[idx],
            distance=float(distances[idx]) if distances[idx] is not None else None,
        )
        for idx, doc_id in enumerate(ids)
    ]


def _records_from_get(results: Any) -> list[DocumentRecord]:
    ids = list(results.get("ids") or [])
    documents = results.get("documents")
    documents = list(documents) if documents is not None else [None] * len(ids)
    metadatas = results.get("metadatas")
    metadatas = list(metadatas) if metadatas is not None else [None] * len(ids)
    embeddings = _float_rows(results.get("embeddings")) or [None] * len(ids)
    return [
        DocumentRecord(
            id=doc_id,
            document=documents[idx],
            metadata=dict(metadatas[idx]) if metadatas[idx] else None,
            embedding=embeddings[idx],
        )
        for idx, doc_id in enumerate(ids)
    ]


def _first_row(rows: Any, length: int) -> list[list[float] | None]:
    if rows is None or len(rows) == 0:
        return [None] * length
    return _float_rows(rows[0]) or [None] * length


__all__ = ["ChromaGateway"]
