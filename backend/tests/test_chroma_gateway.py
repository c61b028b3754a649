"""Tests for the Chroma gateway against an in-memory async client."""

from __future__ import annotations

import pytest

from vector_desk.core.config import Settings
from vector_desk.core.errors import NotConnectedError, RemoteError
from vector_desk.gateway.chroma import ChromaGateway, _hnsw_metadata, _records_from_query
from vector_desk.gateway.embedding_functions import get_embedding_function, match_collection_embedding
from vector_desk.models.entities import (
    CollectionSummary,
    CopyCollectionParams,
    CopyProgress,
    HNSWConfig,
    NewDocument,
    SearchDocumentsParams,
    UpdateDocumentParams,
)


class MemoryCollection:
    def __init__(self, name: str, metadata: dict | None = None) -> None:
        self.name = name
        self.id = f"uuid-{name}"
        self.metadata = metadata
        self.rows: dict[str, dict] = {}
        self.updates: list[dict] = []
        self.configuration_json = {}

    async def count(self) -> int:
        return len(self.rows)

    async def add(self, ids, documents=None, metadatas=None, embeddings=None) -> None:
        for idx, doc_id in enumerate(ids):
            if doc_id in self.rows:
                raise ValueError(f"duplicate id {doc_id}")
            self.rows[doc_id] = {
                "document": documents[idx] if documents else None,
                "metadata": metadatas[idx] if metadatas else None,
                "embedding": embeddings[idx] if embeddings else [0.0, 0.0],
            }

    async def get(self, ids=None, where=None, limit=None, offset=None, include=()) -> dict:
        keys = list(ids) if ids is not None else list(self.rows)
        start = offset or 0
        keys = keys[start : start + limit] if limit is not None else keys[start:]
        return {
            "ids": keys,
            "documents": [self.rows[key]["document"] for key in keys],
            "metadatas": [self.rows[key]["metadata"] for key in keys],
            "embeddings": [self.rows[key]["embedding"] for key in keys] if "embeddings" in include else None,
        }

    async def update(self, **kwargs) -> None:
        self.updates.append(kwargs)

    async def delete(self, ids) -> None:
        for doc_id in ids:
            self.rows.pop(doc_id, None)


class MemoryClient:
    def __init__(self) -> None:
        self.collections: dict[str, MemoryCollection] = {}

    async def get_collection(self, name: str, embedding_function=None) -> MemoryCollection:
        if name not in self.collections:
            raise ValueError(f"Collection {name} does not exist.")
        return self.collections[name]

    async def create_collection(self, name: str, metadata=None, embedding_function=None) -> MemoryCollection:
        if name in self.collections:
            raise ValueError(f"Collection {name} already exists.")
        collection = MemoryCollection(name, metadata)
        self.collections[name] = collection
        return collection

    async def list_collections(self) -> list[MemoryCollection]:
        return list(self.collections.values())

    async def delete_collection(self, name: str) -> None:
        del self.collections[name]


@pytest.fixture
def memory_client() -> MemoryClient:
    return MemoryClient()


@pytest.fixture
def chroma(memory_client: MemoryClient) -> ChromaGateway:
    gateway = ChromaGateway(Settings(copy_batch_size=2))
    gateway._clients["local"] = memory_client
    return gateway


async def _seed(client: MemoryClient, name: str, count: int) -> MemoryCollection:
    collection = await client.create_collection(name)
    await collection.add(
        ids=[f"d{i}" for i in range(count)],
        documents=[f"text {i}" for i in range(count)],
        metadatas=[{"n": i} for i in range(count)],
        embeddings=[[float(i), 1.0] for i in range(count)],
    )
    return collection


async def test_list_collections_reads_stored_embedding_function(
    chroma: ChromaGateway, memory_client: MemoryClient
) -> None:
    collection = await _seed(memory_client, "books", 1)
    collection.configuration_json = {
        "embedding_function": {"type": "known", "name": "openai", "config": {"model_name": "text-embedding-3-large"}}
    }
    await _seed(memory_client, "legacy", 0)
    memory_client.collections["legacy"].configuration_json = {"embedding_function": {"type": "legacy"}}
    summaries = {summary.name: summary for summary in await chroma.list_collections("local")}
    books = summaries["books"]
    assert books.count == 1
    assert books.embedding_function == {
        "name": "openai",
        "type": "known",
        "config": {"model_name": "text-embedding-3-large"},
    }
    assert match_collection_embedding(books) == "openai-3-large"
    assert summaries["legacy"].embedding_function == {"name": "legacy", "type": "legacy"}


async def test_not_connected_profile_raises(chroma: ChromaGateway) -> None:
    with pytest.raises(NotConnectedError):
        await chroma.list_collections("other")


async def test_client_errors_become_remote_errors(chroma: ChromaGateway) -> None:
    with pytest.raises(RemoteError, match="does not exist"):
        await chroma.search_documents("local", SearchDocumentsParams("missing"))


async def test_copy_pages_in_batches_and_reports_progress(chroma: ChromaGateway, memory_client: MemoryClient) -> None:
    await _seed(memory_client, "books", 5)
    events: list[CopyProgress] = []
    result = await chroma.copy_collection(
        "local",
        CopyCollectionParams("books", "books-copy", regenerate_embeddings=False),
        events.append,
    )
    assert result.success
    assert result.copied_documents == 5
    assert [event.processed_documents for event in events if event.phase == "copying"] == [0, 2, 4, 5]
    assert events[-1].phase == "complete"
    copied = memory_client.collections["books-copy"].rows
    assert copied["d3"]["embedding"] == [3.0, 1.0]


async def test_copy_cancel_stops_at_batch_boundary(chroma: ChromaGateway, memory_client: MemoryClient) -> None:
    await _seed(memory_client, "books", 6)
    events: list[CopyProgress] = []

    def on_progress(event: CopyProgress) -> None:
        events.append(event)
        if event.phase == "copying" and event.processed_documents == 2:
            chroma._cancel_events["local"].set()

    result = await chroma.copy_collection("local", CopyCollectionParams("books", "partial"), on_progress)
    assert not result.success
    assert result.error == "Copy cancelled"
    assert result.copied_documents == 2
    assert events[-1].phase == "cancelled"


async def test_copy_failure_is_reported_not_raised(chroma: ChromaGateway, memory_client: MemoryClient) -> None:
    await _seed(memory_client, "books", 1)
    await memory_client.create_collection("taken")
    events: list[CopyProgress] = []
    result = await chroma.copy_collection("local", CopyCollectionParams("books", "taken"), events.append)
    assert not result.success
    assert "already exists" in result.error
    assert events[-1].phase == "error"


async def test_update_text_keeps_existing_vector(chroma: ChromaGateway, memory_client: MemoryClient) -> None:
    collection = await _seed(memory_client, "books", 1)
    await chroma.update_document("local", UpdateDocumentParams("books", "d0", document="changed"))
    assert collection.updates[-1] == {"ids": ["d0"], "documents": ["changed"], "embeddings": [[0.0, 1.0]]}

    await chroma.update_document("local", UpdateDocumentParams("books", "d0", regenerate_embedding=True))
    assert collection.updates[-1] == {"ids": ["d0"], "documents": ["text 0"]}


async def test_batch_create_collects_errors_per_batch(chroma: ChromaGateway, memory_client: MemoryClient) -> None:
    await _seed(memory_client, "books", 1)
    documents = [NewDocument(id=doc_id, document="x") for doc_id in ("n1", "n2", "d0", "n3")]
    result = await chroma.create_documents_batch("local", "books", documents)
    assert result.created_ids == ["n1", "n2"]
    assert result.errors == ["Batch 2: duplicate id d0"]


def test_hnsw_metadata_keys() -> None:
    assert _hnsw_metadata(None) == {}
    assert _hnsw_metadata(HNSWConfig(space="ip", ef_construction=100, max_neighbors=16)) == {
        "hnsw:space": "ip",
        "hnsw:construction_ef": 100,
        "hnsw:M": 16,
    }


def test_records_from_query_unwraps_first_query() -> None:
    records = _records_from_query(
        {
            "ids": [["a", "b"]],
            "documents": [["x", None]],
            "metadatas": [[{"k": 1}, None]],
            "embeddings": [[[1, 2], [3, 4]]],
            "distances": [[0.1, 0.2]],
        }
    )
    assert [record.id for record in records] == ["a", "b"]
    assert records[0].metadata == {"k": 1}
    assert records[1].metadata is None
    assert records[1].embedding == [3.0, 4.0]
    assert records[0].distance == pytest.approx(0.1)


def test_match_collection_embedding() -> None:
    assert match_collection_embedding(CollectionSummary(name="a", id="1")) == "default"
    openai = CollectionSummary(
        name="b",
        id="2",
        embedding_function={"name": "openai", "type": "known", "config": {"model_name": "text-embedding-3-large"}},
    )
    assert match_collection_embedding(openai) == "openai-3-large"
    unknown_model = CollectionSummary(
        name="c",
        id="3",
        embedding_function={"name": "openai", "type": "known", "config": {"model_name": "mystery"}},
    )
    assert match_collection_embedding(unknown_model) == "openai-3-small"
    assert get_embedding_function("nope") is None
