"""Tests for creating and copying collections from a draft."""

import pytest

from conftest import FakeGateway, make_record
from vector_desk.core.errors import ValidationError
from vector_desk.models.entities import CollectionSummary, DraftDocument, HNSWDraft, TypedField
from vector_desk.query.service import QueryService
from vector_desk.session.draft_collection import DraftCollectionSession, build_hnsw_config


@pytest.fixture
def active() -> list:
    return []


@pytest.fixture
def session(service: QueryService, active: list) -> DraftCollectionSession:
    return DraftCollectionSession(service, "local", on_active_change=active.append)


def test_build_hnsw_config_sends_only_overrides() -> None:
    assert build_hnsw_config(HNSWDraft()) is None
    config = build_hnsw_config(HNSWDraft(space="cosine", ef_construction="200", max_neighbors="-3"))
    assert config is not None
    assert config.space == "cosine"
    assert config.ef_construction == 200
    assert config.max_neighbors is None


async def test_name_is_required(session: DraftCollectionSession, gateway: FakeGateway) -> None:
    session.start_creation()
    with pytest.raises(ValidationError, match="Collection name is required"):
        await session.save()
    assert session.validation_errors == {"name": "Collection name is required"}
    assert gateway.calls["create_collection"] == 0
    session.update(name="x")
    assert "name" not in session.validation_errors


async def test_create_with_first_document(session: DraftCollectionSession, gateway: FakeGateway, active: list) -> None:
    session.start_creation()
    session.update(
        name=" notes ",
        first_document=DraftDocument(id="n1", document="hello", metadata={"year": TypedField("2024", "number")}),
    )
    assert await session.save()
    assert gateway.collections["notes"]["n1"].metadata == {"year": 2024}
    assert session.draft is None
    assert active == [None, "notes"]


async def test_create_failure_is_form_error(session: DraftCollectionSession, gateway: FakeGateway) -> None:
    gateway.add_collection("dup")
    session.start_creation()
    session.update(name="dup")
    assert not await session.save()
    assert session.validation_errors["_form"] == "Collection dup already exists"
    assert session.draft is not None
    assert not session.is_creating


async def test_copy_reports_progress_and_dismiss_navigates(
    session: DraftCollectionSession,
    gateway: FakeGateway,
    active: list,
) -> None:
    gateway.add_collection("books", [make_record(str(i)) for i in range(10)])
    source = CollectionSummary(name="books", id="id-books", count=10)
    draft = session.start_copy_from(source)
    assert draft.name == "books-copy"
    assert session.is_copy_mode

    assert await session.save()
    tracker = session.copy_progress
    assert tracker is not None
    assert tracker.phase == "complete"
    assert tracker.progress.processed_documents == 10
    assert len(gateway.collections["books-copy"]) == 10
    assert gateway.copies[0].regenerate_embeddings is False

    assert session.dismiss_copy_progress()
    assert session.draft is None
    assert session.copy_progress is None
    assert active[-1] == "books-copy"


async def test_copy_with_other_embedding_regenerates(session: DraftCollectionSession, gateway: FakeGateway) -> None:
    gateway.add_collection("books", [make_record("a")])
    session.start_copy_from(CollectionSummary(name="books", id="id-books", count=1))
    session.update(embedding_function_id="openai-3-small")
    await session.save()
    assert gateway.copies[0].regenerate_embeddings is True


async def test_cancelled_copy_keeps_draft(session: DraftCollectionSession, gateway: FakeGateway) -> None:
    gateway.add_collection("books", [make_record(str(i)) for i in range(12)])
    gateway.cancel_after_batches = 1
    session.start_copy_from(CollectionSummary(name="books", id="id-books", count=12))
    assert not await session.save()
    tracker = session.copy_progress
    assert tracker is not None
    assert tracker.phase == "cancelled"
    assert tracker.progress.processed_documents == 5
    assert session.dismiss_copy_progress()
    assert session.draft is not None
