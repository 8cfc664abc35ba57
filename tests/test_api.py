import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from floorplan.api import routes
from floorplan.api.main import create_app
from floorplan.api.schemas import EventRequest
from floorplan.services.session import EditorSession


@pytest.fixture
def client(monkeypatch):
    """Test client backed by a fresh session"""
    session = EditorSession()
    monkeypatch.setattr(routes, "_session", session)
    yield TestClient(create_app())
    session.dispose()


def canvas(kind, x, y, **mods):
    return {"canvas": {"type": kind, "position": {"x": x, "y": y}, "modifiers": mods}}


def draw_wall(client, start, end):
    client.post("/api/tools/wall/activate")
    client.post("/api/events", json=canvas("mousedown", *start))
    return client.post("/api/events", json=canvas("mouseup", *end))


class TestBasics:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_list_tools(self, client):
        tools = client.get("/api/tools").json()
        ids = [t["id"] for t in tools]
        assert {"select", "wall", "room", "door", "window", "move", "remove"} == set(ids)
        assert [t["id"] for t in tools if t["active"]] == ["select"]

    def test_activate_unknown_tool(self, client):
        response = client.post("/api/tools/hammer/activate")
        assert response.status_code == 404

    def test_activate_tool(self, client):
        response = client.post("/api/tools/wall/activate")
        assert response.status_code == 200
        assert response.json()["active_tool"] == "wall"


class TestEvents:
    """Driving tools through /events"""

    def test_draw_wall(self, client):
        response = draw_wall(client, (0, 0), (100, 0))

        assert response.status_code == 200
        body = response.json()
        assert body["state"]["counts"]["walls"] == 1
        assert body["state"]["can_undo"] is True
        assert "wall:created" in [e["type"] for e in body["events"]]

    def test_key_event(self, client):
        response = client.post("/api/events", json={"key": {"key": "w"}})
        assert response.json()["state"]["active_tool"] == "wall"

    def test_exactly_one_payload(self, client):
        assert client.post("/api/events", json={}).status_code == 422
        both = {**canvas("mousedown", 0, 0), "key": {"key": "w"}}
        assert client.post("/api/events", json=both).status_code == 422

    def test_event_request_schema(self):
        assert EventRequest.model_validate({"key": {"key": "w"}}).key.key == "w"
        with pytest.raises(ValidationError):
            EventRequest()
        with pytest.raises(ValidationError):
            EventRequest.model_validate({**canvas("mousedown", 0, 0), "key": {"key": "w"}})

    def test_undo_and_redo(self, client):
        draw_wall(client, (0, 0), (100, 0))

        undone = client.post("/api/undo").json()
        assert undone["state"]["counts"]["walls"] == 0
        assert undone["state"]["can_redo"] is True

        redone = client.post("/api/redo").json()
        assert redone["state"]["counts"]["walls"] == 1

    def test_state(self, client):
        state = client.get("/api/state").json()
        assert state["counts"]["nodes"] == 0
        assert state["selection"]["node_ids"] == []


class TestProject:
    """Snapshot export and import over HTTP"""

    def test_get_and_put_project(self, client):
        draw_wall(client, (0, 0), (100, 0))
        project = client.get("/api/project").json()
        assert len(project["canvas"]["walls"]) == 1

        client.post("/api/undo")
        response = client.put("/api/project", json=project)

        assert response.status_code == 200
        assert response.json()["counts"]["walls"] == 1
        assert response.json()["can_undo"] is False

    def test_invalid_project_is_a_conflict(self, client):
        project = {"canvas": {"nodes": [
            {"id": "a", "position": {"x": 0, "y": 0}, "connected_wall_ids": ["ghost"]},
        ]}}
        response = client.put("/api/project", json=project)
        assert response.status_code == 409
        assert "ghost" not in client.get("/api/project").text
