"""API integration tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from conftest import FakeGateway, make_record
from vector_desk.api import dependencies as deps
from vector_desk.app import app

BOOKS = "/profiles/local/collections/books"


@pytest.fixture
def fake_gateway(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> FakeGateway:
    config = tmp_path / "config.yaml"
    config.write_text("profiles:\n  - id: local\n    name: Local\n")
    monkeypatch.setenv("VDESK_CONFIG", str(config))
    deps.reset_state()
    gateway = FakeGateway()
    gateway.add_collection("books", [make_record("a", year=2020), make_record("b", year=2021)])
    gateway.add_collection("empty")
    deps._GATEWAY = gateway
    return gateway


@pytest.fixture
def client(fake_gateway: FakeGateway) -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


def test_unknown_profile_is_404(client: TestClient) -> None:
    resp = client.get("/profiles/nope/collections")
    assert resp.status_code == 404


def test_connect_and_list_collections(client: TestClient, fake_gateway: FakeGateway) -> None:
    resp = client.post("/profiles/local/connect")
    assert resp.status_code == 200
    profiles = client.get("/profiles").json()
    assert profiles == [{"id": "local", "name": "Local", "url": "http://localhost:8000", "connected": True}]

    collections = client.get("/profiles/local/collections").json()
    assert [item["name"] for item in collections] == ["books", "empty"]
    assert collections[0]["count"] == 2
    assert fake_gateway.calls["connect"] == 1


def test_remote_failure_maps_to_502(client: TestClient, fake_gateway: FakeGateway) -> None:
    fake_gateway.fail("connect", "connection refused")
    resp = client.post("/profiles/local/connect")
    assert resp.status_code == 502
    body = resp.json()
    assert body["error"] == "remote_error"
    assert body["detail"] == "connection refused"
    assert body["operation"] == "connect"


def test_select_copy_paste_save_flow(client: TestClient, fake_gateway: FakeGateway) -> None:
    view = client.get(f"{BOOKS}/documents").json()
    assert [row["id"] for row in view["rows"]] == ["a", "b"]

    selection = client.post(f"{BOOKS}/selection/click", json={"row_id": "a"}).json()
    assert selection["selected_ids"] == ["a"]
    selection = client.post(f"{BOOKS}/selection/click", json={"row_id": "b", "shift": True}).json()
    assert selection["selected_ids"] == ["a", "b"]
    assert selection["anchor_id"] == "a"

    assert client.post(f"{BOOKS}/documents/copy").json()["status"] == "ok"
    clipboard = client.get("/clipboard").json()
    assert clipboard["kind"] == "documents"
    assert clipboard["document_ids"] == ["a", "b"]

    view = client.post(f"{BOOKS}/drafts/paste").json()
    assert [draft["id"] for draft in view["drafts"]] == ["a-copy", "b-copy"]
    assert view["drafts"][0]["metadata"]["year"] == {"value": "2020", "type": "number"}

    view = client.post(f"{BOOKS}/drafts/save").json()
    assert view["drafts"] == []
    assert fake_gateway.calls["create_documents_batch"] == 1
    assert [row["id"] for row in view["rows"]] == ["a", "b", "a-copy", "b-copy"]


def test_invalid_draft_is_422_with_position(client: TestClient, fake_gateway: FakeGateway) -> None:
    client.get(f"{BOOKS}/documents")
    client.post(f"{BOOKS}/drafts")
    client.patch(
        f"{BOOKS}/drafts/0",
        json={"document": "body", "metadata": {"year": {"value": "abc", "type": "number"}}},
    )
    resp = client.post(f"{BOOKS}/drafts/save")
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "validation_error"
    assert body["detail"] == "Document 1: year: Must be a valid number"
    assert body["index"] == 0
    assert fake_gateway.calls["create_document"] == 0


def test_null_draft_fields_are_ignored(client: TestClient, fake_gateway: FakeGateway) -> None:
    client.get(f"{BOOKS}/documents")
    draft_id = client.post(f"{BOOKS}/drafts").json()["drafts"][0]["id"]
    resp = client.patch(f"{BOOKS}/drafts/0", json={"id": None, "document": None})
    assert resp.status_code == 200
    assert resp.json()["drafts"][0]["id"] == draft_id
    resp = client.post(f"{BOOKS}/drafts/save")
    assert resp.status_code == 422
    assert resp.json()["field"] == "document"
    assert fake_gateway.calls["create_document"] == 0


def test_drag_selection(client: TestClient) -> None:
    client.get(f"{BOOKS}/documents")
    client.post(f"{BOOKS}/selection/press", json={"row_index": 0})
    selection = client.post(f"{BOOKS}/selection/enter", json={"row_index": 1}).json()
    assert selection["selected_ids"] == ["a", "b"]
    client.post(f"{BOOKS}/selection/release")
    selection = client.post(f"{BOOKS}/selection/enter", json={"row_index": 0}).json()
    assert selection["selected_ids"] == ["a", "b"]


def test_filters_route(client: TestClient, fake_gateway: FakeGateway) -> None:
    resp = client.put(
        f"{BOOKS}/filters",
        json={
            "n_results": 5,
            "rows": [
                {"type": "metadata", "metadata_key": "year", "operator": "$gt", "metadata_value": "2020"},
                {"type": "id", "search_value": "b"},
            ],
        },
    )
    assert resp.status_code == 200
    params = fake_gateway.searches[-1]
    assert params.metadata_filter == {"year": {"$gt": 2020}}
    assert params.n_results == 5
    assert [row["id"] for row in resp.json()["rows"]] == ["b"]


def test_delete_collection_requires_confirmation(client: TestClient, fake_gateway: FakeGateway) -> None:
    resp = client.request("DELETE", "/profiles/local/collections/books", json={"confirmation": "book"})
    assert resp.status_code == 422
    assert resp.json()["field"] == "confirmation"
    assert "books" in fake_gateway.collections

    resp = client.request("DELETE", "/profiles/local/collections/books", json={"confirmation": "books"})
    assert resp.status_code == 200
    assert "books" not in fake_gateway.collections


def test_copy_collection_runs_in_background(client: TestClient, fake_gateway: FakeGateway) -> None:
    draft = client.post("/profiles/local/collections/books/duplicate").json()
    assert draft["draft"]["name"] == "books-copy"
    assert draft["draft"]["source_collection"] == "books"

    resp = client.post("/profiles/local/draft-collection/save")
    assert resp.status_code == 202

    progress = client.get("/profiles/local/copy-progress").json()
    assert progress["phase"] == "complete"
    assert progress["percentage"] == 100
    assert progress["can_dismiss"] is True

    assert client.post("/profiles/local/copy-progress/dismiss").json()["status"] == "ok"
    assert client.get("/profiles/local/draft-collection").json()["draft"] is None
    assert client.get("/profiles/local/copy-progress").status_code == 404


def test_create_collection_from_draft(client: TestClient, fake_gateway: FakeGateway) -> None:
    client.post("/profiles/local/draft-collection")
    resp = client.post("/profiles/local/draft-collection/save")
    assert resp.status_code == 422
    assert resp.json()["field"] == "name"

    client.patch("/profiles/local/draft-collection", json={"name": "notes", "hnsw": {"space": "cosine"}})
    body = client.post("/profiles/local/draft-collection/save").json()
    assert body["draft"] is None
    assert "notes" in fake_gateway.collections


def test_menu_command_route(client: TestClient) -> None:
    client.get(f"{BOOKS}/documents")
    resp = client.post("/profiles/local/commands/select_all_documents")
    assert resp.json() == {"command": "select_all_documents", "handled": True}
    view = client.get(f"{BOOKS}/documents").json()
    assert view["selection"]["selected_ids"] == ["a", "b"]

    assert client.post("/profiles/local/commands/explode").status_code == 404
    resp = client.post("/profiles/local/shortcuts", json={"accelerator": "CmdOrCtrl+N"})
    assert resp.json()["handled"] is True


def test_metrics_endpoint(client: TestClient) -> None:
    client.get(f"{BOOKS}/documents")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "vdesk_cache_lookups_total" in resp.text


def test_edit_with_regenerate_and_bad_embedding(client: TestClient, fake_gateway: FakeGateway) -> None:
    client.get(f"{BOOKS}/documents")
    client.post(f"{BOOKS}/selection/click", json={"row_id": "a"})
    started = client.post(f"{BOOKS}/edit").json()
    assert started["fields"]["year"] == {"value": "2020", "type": "number"}

    edit = client.patch(f"{BOOKS}/edit", json={"field": "embedding", "value": "not json"}).json()
    assert edit["embedding_error"] == "Invalid JSON format"
    resp = client.post(f"{BOOKS}/edit/save")
    assert resp.status_code == 422
    assert resp.json()["field"] == "embedding"
    assert fake_gateway.calls["update_document"] == 0

    edit = client.patch(f"{BOOKS}/edit", json={"field": "document", "value": "new body"}).json()
    assert edit["document_changed"] is True
    resp = client.post(f"{BOOKS}/edit/save", params={"regenerate": "true"})
    assert resp.json()["status"] == "ok"
    update = fake_gateway.updates[-1]
    assert update.document == "new body"
    assert update.regenerate_embedding is True
    assert update.embedding is None
