"""Vector database boundary contract."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Protocol, Sequence

from vector_desk.core.config import ConnectionProfile
from vector_desk.core.errors import RemoteError, VectorDeskError
from vector_desk.core.logging import get_logger
from vector_desk.core.metrics import GATEWAY_CALLS, GATEWAY_LATENCY
from vector_desk.models.entities import (
    BatchCreateResult,
    CollectionSummary,
    CopyCollectionParams,
    CopyCollectionResult,
    CopyProgress,
    CreateCollectionParams,
    DocumentRecord,
    NewDocument,
    SearchDocumentsParams,
    UpdateDocumentParams,
)

logger = get_logger(__name__)

ProgressCallback = Callable[[CopyProgress], None]


class VectorStoreGateway(Protocol):
    """Async operations the session core needs from a vector database."""

    async def connect(self, profile: ConnectionProfile) -> None: ...

    async def disconnect(self, profile_id: str) -> None: ...

    async def list_collections(self, profile_id: str) -> list[CollectionSummary]: ...

    async def search_documents(self, profile_id: str, params: SearchDocumentsParams) -> list[DocumentRecord]: ...

    async def create_document(
        self,
        profile_id: str,
        collection_name: str,
        document: NewDocument,
        generate_embedding: bool = True,
    ) -> None: ...

    async def create_documents_batch(
        self,
        profile_id: str,
        collection_name: str,
        documents: Sequence[NewDocument],
        generate_embeddings: bool = True,
    ) -> BatchCreateResult: ...

    async def update_document(self, profile_id: str, params: UpdateDocumentParams) -> None: ...

    async def delete_documents(self, profile_id: str, collection_name: str, ids: Sequence[str]) -> None: ...

    async def create_collection(self, profile_id: str, params: CreateCollectionParams) -> CollectionSummary: ...

    async def copy_collection(
        self,
        profile_id: str,
        params: CopyCollectionParams,
        on_progress: ProgressCallback,
    ) -> CopyCollectionResult: ...

    async def cancel_copy(self, profile_id: str) -> None: ...

    async def delete_collection(self, profile_id: str, collection_name: str) -> None: ...


@asynccontextmanager
async def remote_call(operation: str) -> AsyncIterator[None]:
    """Time a boundary call and convert any failure into ``RemoteError``."""
    start = time.perf_counter()
    try:
        yield
    except VectorDeskError:
        GATEWAY_CALLS.labels(operation=operation, status="error").inc()
        raise
    except Exception as exc:
        GATEWAY_CALLS.labels(operation=operation, status="error").inc()
        logger.exception("Vector database call %s failed: %s", operation, exc)
        raise RemoteError(str(exc) or f"{operation} failed", operation=operation) from exc
    else:
        GATEWAY_CALLS.labels(operation=operation, status="ok").inc()
    finally:
        GATEWAY_LATENCY.labels(operation=operation).observe(time.perf_counter() - start)


__all__ = ["VectorStoreGateway", "ProgressCallback", "remote_call"]
