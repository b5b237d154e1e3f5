"""
FastAPI surface.
"""
import io
import json

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from curious_explorer.backend.server import app
from curious_explorer.errors import PersistenceFailed
from curious_explorer.explorer.session import ExplorerSession, set_session

from conftest import FailingStore, FakeAI, make_tree


def parse_events(body: str) -> list[tuple[str, dict]]:
    events = []
    for block in body.strip().split("\n\n"):
        lines = block.splitlines()
        if not lines or lines[0].startswith(":"):
            continue
        events.append((lines[0][len("event: "):], json.loads(lines[1][len("data: "):])))
    return events


@pytest.fixture
def server_session():
    return set_session(ExplorerSession(ai=FakeAI(), store=FailingStore([make_tree()])))


@pytest.fixture
def client(server_session):
    with TestClient(app) as client:
        yield client


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "offline": False, "generating": False}


def test_state_after_startup_has_collection(client):
    state = client.get("/state").json()
    assert [item["id"] for item in state["collection"]] == ["car"]
    assert state["currentItem"] is None


def test_explore_streams_statuses_then_item(client):
    response = client.post("/explore", json={"query": "Toaster"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    events = parse_events(response.text)

    assert [data["stage"] for name, data in events if name == "status"] == [
        "analyzing", "rendering_assembled", "rendering_details", "scanning",
    ]
    name, data = events[-1]
    assert name == "complete"
    assert data["item"]["name"] == "Toaster"
    assert data["history"] == [{"id": data["item"]["id"], "name": "Toaster", "depth": 0}]


def test_explore_child_of_loaded_exploration(client):
    client.post("/load/car")
    events = parse_events(client.post("/explore", json={"query": "Brakes", "parent_id": "car"}).text)

    name, data = events[-1]
    assert name == "complete"
    assert data["item"]["rootId"] == "car"
    assert data["item"]["depth"] == 1
    assert [entry["id"] for entry in data["history"]][0] == "car"


def test_explore_offline_streams_error(client):
    client.post("/configure", json={})
    events = parse_events(client.post("/explore", json={"query": "Toaster"}).text)

    assert events[-1][0] == "error"
    assert events[-1][1]["message"] == "Offline Mode: Cannot generate new explorations."


def test_explore_blank_query_is_rejected(client):
    assert client.post("/explore", json={"query": "   "}).status_code == 422


def test_explore_image_upload(client):
    buffer = io.BytesIO()
    Image.new("RGB", (16, 16), "blue").save(buffer, format="JPEG")

    response = client.post("/explore/image", files={"file": ("photo.jpg", buffer.getvalue(), "image/jpeg")})

    name, data = parse_events(response.text)[-1]
    assert name == "complete"
    assert data["item"]["name"] == "Car"


def test_explore_image_rejects_non_image(client):
    response = client.post("/explore/image", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert response.status_code == 400


def test_load_and_navigate(client):
    loaded = client.post("/load/car", params={"target_id": "engine"}).json()
    assert loaded["currentItem"]["id"] == "engine"
    assert [entry["id"] for entry in loaded["history"]] == ["car", "engine"]

    navigated = client.post("/navigate/piston").json()
    assert [entry["id"] for entry in navigated["history"]] == ["car", "engine", "piston"]

    assert client.post("/navigate/nope").status_code == 404
    assert client.post("/load/nope").status_code == 404


def test_collection_search(client):
    assert [item["id"] for item in client.get("/collection", params={"q": "piston"}).json()["explorations"]] == ["car"]
    assert client.get("/collection", params={"q": "toaster"}).json()["explorations"] == []


def test_delete(client, server_session):
    client.post("/load/car")
    assert client.delete("/explorations/car").status_code == 200
    assert server_session.collection == []
    assert server_session.current_item is None


def test_delete_failure_is_502(client, server_session):
    server_session.store.fail_delete = True
    assert client.delete("/explorations/car").status_code == 502
    assert len(server_session.collection) == 1


def test_settings(client):
    response = client.put("/settings", json={"mode": "fast", "style": "Schematic"})
    assert response.status_code == 200
    assert response.json()["generationMode"] == "fast"
    assert response.json()["generationOptions"]["style"] == "Schematic"

    assert client.put("/settings", json={"style": "Watercolor"}).status_code == 422
    assert client.put("/settings", json={"mode": "turbo"}).status_code == 422


def test_reset(client, server_session):
    client.post("/load/car")
    assert client.post("/reset").json()["status"]["stage"] == "idle"
    assert server_session.history == []


def test_export(client):
    response = client.get("/export")
    assert response.status_code == 200
    assert "curious_explorer_backup_" in response.headers["content-disposition"]
    assert [item["id"] for item in response.json()] == ["car"]


def test_import(client):
    toaster = {"id": "toaster", "name": "Toaster", "rootId": "toaster", "depth": 0, "timestamp": 99, "children": []}
    response = client.post("/import", json=[toaster])
    assert response.json() == {"imported": 1, "total": 2}


def test_import_malformed_is_400(client):
    assert client.post("/import", json={"id": "x"}).status_code == 400


def test_import_storage_failure_is_503(client, server_session):
    class BrokenStore(FailingStore):
        def bulk_put(self, items):
            raise PersistenceFailed()

    server_session.store = BrokenStore()
    assert client.post("/import", json=[{"id": "x", "name": "X"}]).status_code == 503
