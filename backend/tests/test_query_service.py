"""Tests for the query cache and its invalidation rules."""

import pytest

from conftest import FakeClock, FakeGateway, make_record
from vector_desk.core.errors import RemoteError
from vector_desk.models.entities import CreateCollectionParams, NewDocument, SearchDocumentsParams
from vector_desk.query.cache import QueryCache, collections_key
from vector_desk.query.service import QueryService


def test_cache_entries_go_stale(clock: FakeClock) -> None:
    cache = QueryCache(clock=clock)
    key = collections_key("local")
    cache.set(key, ["x"], stale_after=10)
    assert cache.get(key) == (True, ["x"])
    clock.advance(11)
    assert cache.get(key) == (False, None)


def test_injected_empty_cache_is_kept(gateway: FakeGateway, settings, clock: FakeClock) -> None:
    cache = QueryCache(clock=clock)
    service = QueryService(gateway=gateway, settings=settings, cache=cache)
    assert service.cache is cache


async def test_reads_are_cached_within_window(service: QueryService, gateway: FakeGateway, clock: FakeClock) -> None:
    gateway.add_collection("books", [make_record("a")])
    params = SearchDocumentsParams(collection_name="books")
    await service.search_documents("local", params)
    await service.search_documents("local", SearchDocumentsParams(collection_name="books"))
    assert gateway.calls["search_documents"] == 1
    clock.advance(service.settings.documents_stale_seconds + 1)
    await service.search_documents("local", params)
    assert gateway.calls["search_documents"] == 2
    await service.search_documents("local", params, refresh=True)
    assert gateway.calls["search_documents"] == 3


async def test_filter_key_order_does_not_split_cache(service: QueryService, gateway: FakeGateway) -> None:
    gateway.add_collection("books")
    first = {"$and": [{"a": {"$eq": 1}}], "z": 1}
    second = {"z": 1, "$and": [{"a": {"$eq": 1}}]}
    await service.search_documents("local", SearchDocumentsParams("books", metadata_filter=first))
    await service.search_documents("local", SearchDocumentsParams("books", metadata_filter=second))
    assert gateway.calls["search_documents"] == 1


async def test_document_mutation_invalidates_only_that_collection(service: QueryService, gateway: FakeGateway) -> None:
    gateway.add_collection("books", [make_record("a")])
    gateway.add_collection("films", [make_record("f")])
    await service.list_collections("local")
    await service.search_documents("local", SearchDocumentsParams("books", query_text="x"))
    await service.search_documents("local", SearchDocumentsParams("books"))
    await service.search_documents("local", SearchDocumentsParams("films"))

    await service.delete_documents("local", "books", ["a"])

    await service.search_documents("local", SearchDocumentsParams("books", query_text="x"))
    await service.search_documents("local", SearchDocumentsParams("books"))
    await service.search_documents("local", SearchDocumentsParams("films"))
    await service.list_collections("local")
    assert gateway.calls["search_documents"] == 5
    assert gateway.calls["list_collections"] == 2


async def test_collection_mutation_keeps_document_queries(service: QueryService, gateway: FakeGateway) -> None:
    gateway.add_collection("books", [make_record("a")])
    await service.list_collections("local")
    await service.search_documents("local", SearchDocumentsParams("books"))

    await service.create_collection("local", CreateCollectionParams(name="new"))

    await service.search_documents("local", SearchDocumentsParams("books"))
    collections = await service.list_collections("local")
    assert gateway.calls["search_documents"] == 1
    assert gateway.calls["list_collections"] == 2
    assert {item.name for item in collections} == {"books", "new"}


async def test_failed_mutation_leaves_cache_alone(service: QueryService, gateway: FakeGateway) -> None:
    gateway.add_collection("books")
    await service.search_documents("local", SearchDocumentsParams("books"))
    gateway.fail("create_document")
    with pytest.raises(RemoteError):
        await service.create_document("local", "books", NewDocument(id="n", document="d"))
    await service.search_documents("local", SearchDocumentsParams("books"))
    assert gateway.calls["search_documents"] == 1
