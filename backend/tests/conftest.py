"""Test fixtures for vector-desk."""

from __future__ import annotations

import sys
from collections import Counter
from pathlib import Path
from typing import Sequence

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from vector_desk.core.config import ConnectionProfile, Settings  # noqa: E402
from vector_desk.core.errors import RemoteError  # noqa: E402
from vector_desk.gateway.base import ProgressCallback  # noqa: E402
from vector_desk.models.entities import (  # noqa: E402
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
from vector_desk.query.cache import QueryCache  # noqa: E402
from vector_desk.query.service import QueryService  # noqa: E402


class FakeGateway:
    """In-memory vector store counting every boundary call."""

    def __init__(self, copy_batch_size: int = 5) -> None:
        self.calls: Counter[str] = Counter()
        self.collections: dict[str, dict[str, DocumentRecord]] = {}
        self.metadata: dict[str, dict] = {}
        self.embedding_functions: dict[str, dict | None] = {}
        self.connected: set[str] = set()
        self.failures: dict[str, str] = {}
        self.searches: list[SearchDocumentsParams] = []
        self.updates: list[UpdateDocumentParams] = []
        self.copies: list[CopyCollectionParams] = []
        self.copy_batch_size = copy_batch_size
        self.cancel_after_batches: int | None = None
        self._cancelled = False

    # helpers ------------------------------------------------------------

    def add_collection(self, name: str, records: Sequence[DocumentRecord] = (), metadata: dict | None = None) -> None:
        self.collections[name] = {record.id: record for record in records}
        self.metadata[name] = metadata or {}
        self.embedding_functions[name] = None

    def fail(self, operation: str, message: str = "boom") -> None:
        self.failures[operation] = message

    def _enter(self, operation: str) -> None:
        self.calls[operation] += 1
        message = self.failures.pop(operation, None)
        if message is not None:
            raise RemoteError(message, operation=operation)

    def _summary(self, name: str) -> CollectionSummary:
        return CollectionSummary(
            name=name,
            id=f"id-{name}",
            metadata=self.metadata.get(name) or None,
            count=len(self.collections[name]),
            embedding_function=self.embedding_functions.get(name),
        )

    # protocol -----------------------------------------------------------

    async def connect(self, profile: ConnectionProfile) -> None:
        self._enter("connect")
        self.connected.add(profile.id)

    async def disconnect(self, profile_id: str) -> None:
        self.connected.discard(profile_id)

    async def list_collections(self, profile_id: str) -> list[CollectionSummary]:
        self._enter("list_collections")
        return [self._summary(name) for name in self.collections]

    async def search_documents(self, profile_id: str, params: SearchDocumentsParams) -> list[DocumentRecord]:
        self._enter("search_documents")
        self.searches.append(params)
        records = list(self.collections[params.collection_name].values())
        return records[: params.n_results]

    async def create_document(
        self,
        profile_id: str,
        collection_name: str,
        document: NewDocument,
        generate_embedding: bool = True,
    ) -> None:
        self._enter("create_document")
        self.collections[collection_name][document.id] = DocumentRecord(
            id=document.id, document=document.document, metadata=document.metadata
        )

    async def create_documents_batch(
        self,
        profile_id: str,
        collection_name: str,
        documents: Sequence[NewDocument],
        generate_embeddings: bool = True,
    ) -> BatchCreateResult:
        self._enter("create_documents_batch")
        for document in documents:
            self.collections[collection_name][document.id] = DocumentRecord(
                id=document.id, document=document.document, metadata=document.metadata
            )
        return BatchCreateResult(created_ids=[doc.id for doc in documents])

    async def update_document(self, profile_id: str, params: UpdateDocumentParams) -> None:
        self._enter("update_document")
        self.updates.append(params)
        docs = self.collections[params.collection_name]
        current = docs[params.document_id]
        docs[params.document_id] = DocumentRecord(
            id=current.id,
            document=params.document if params.document is not None else current.document,
            metadata=params.metadata if params.metadata is not None else current.metadata,
            embedding=params.embedding if params.embedding is not None else current.embedding,
        )

    async def delete_documents(self, profile_id: str, collection_name: str, ids: Sequence[str]) -> None:
        self._enter("delete_documents")
        for document_id in ids:
            self.collections[collection_name].pop(document_id, None)

    async def create_collection(self, profile_id: str, params: CreateCollectionParams) -> CollectionSummary:
        self._enter("create_collection")
        if params.name in self.collections:
            raise RemoteError(f"Collection {params.name} already exists", operation="create_collection")
        records = []
        if params.first_document is not None:
            first = params.first_document
            records.append(DocumentRecord(id=first.id, document=first.document, metadata=first.metadata))
        self.add_collection(params.name, records)
        return self._summary(params.name)

    async def copy_collection(
        self,
        profile_id: str,
        params: CopyCollectionParams,
        on_progress: ProgressCallback,
    ) -> CopyCollectionResult:
        self._enter("copy_collection")
        self.copies.append(params)
        self._cancelled = False
        source = list(self.collections[params.source_collection_name].values())
        total = len(source)
        self.add_collection(params.target_name)
        on_progress(CopyProgress(phase="copying", total_documents=total, processed_documents=0))
        copied = 0
        batches = 0
        for start in range(0, total, self.copy_batch_size):
            if self._cancelled:
                on_progress(CopyProgress(phase="cancelled", total_documents=total, processed_documents=copied))
                return CopyCollectionResult(success=False, total_documents=total, copied_documents=copied, error="Copy cancelled")
            for record in source[start : start + self.copy_batch_size]:
                self.collections[params.target_name][record.id] = record
            copied = min(total, start + self.copy_batch_size)
            batches += 1
            on_progress(CopyProgress(phase="copying", total_documents=total, processed_documents=copied))
            if self.cancel_after_batches is not None and batches >= self.cancel_after_batches:
                self._cancelled = True
        on_progress(CopyProgress(phase="complete", total_documents=total, processed_documents=copied))
        return CopyCollectionResult(success=True, total_documents=total, copied_documents=copied)

    async def cancel_copy(self, profile_id: str) -> None:
        self._enter("cancel_copy")
        self._cancelled = True

    async def delete_collection(self, profile_id: str, collection_name: str) -> None:
        self._enter("delete_collection")
        self.collections.pop(collection_name)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_state(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.delenv("VDESK_CONFIG", raising=False)

    from vector_desk.api import dependencies as deps

    deps.reset_state()
    yield
    deps.reset_state()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        profiles=[ConnectionProfile(id="local", name="Local")],
        default_profile="local",
    )


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(gateway: FakeGateway, settings: Settings, clock: FakeClock) -> QueryService:
    return QueryService(gateway=gateway, settings=settings, cache=QueryCache(clock=clock))


def make_record(record_id: str, document: str | None = None, **metadata) -> DocumentRecord:
    return DocumentRecord(id=record_id, document=document or f"text of {record_id}", metadata=metadata or None)


@pytest.fixture
def records() -> list[DocumentRecord]:
    return [
        make_record("a", year=2020, title="first", published=True),
        make_record("b", year=2021, title="second"),
        make_record("c", year=2022, title="third"),
    ]
