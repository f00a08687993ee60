import pytest
from fastapi.testclient import TestClient

from services.api.main import app, sessions


@pytest.fixture
def client():
    sessions.clear()
    with TestClient(app) as test_client:
        yield test_client
    sessions.clear()


@pytest.fixture
def session_id(client) -> str:
    response = client.post("/sessions", json={"seed": 42})
    assert response.status_code == 201
    return response.json()["session_id"]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_mission_table(client):
    body = client.get("/mission").json()
    assert body["mission"]["budget"] == 500
    assert body["outposts"]["command"]["cost"] == 100
    assert body["map"] == {"width": 80, "height": 60, "day_cycle": 14}


def test_session_lifecycle(client, session_id):
    placed = client.post(
        f"/sessions/{session_id}/outposts", json={"type": "command", "x": 10, "y": 10}
    )
    assert placed.status_code == 201
    body = placed.json()
    assert body["budget"] == 400.0
    command_id = body["outposts"][0]["id"]

    client.post(f"/sessions/{session_id}/outposts", json={"type": "power", "x": 15, "y": 10})

    preview = client.post(
        f"/sessions/{session_id}/outposts/{command_id}/preview", json={"x": 200, "y": 10}
    )
    assert preview.status_code == 200
    assert preview.json()["warnings"][0]["code"] == "out_of_bounds"

    moved = client.patch(f"/sessions/{session_id}/outposts/{command_id}", json={"x": 11, "y": 11})
    assert moved.json()["outposts"][0]["x"] == 11

    turn = client.post(f"/sessions/{session_id}/turn").json()
    assert turn["day"] == 1
    assert turn["can_undo"] is True
    assert all(o["status"] == "confirmed" for o in turn["outposts"])

    undone = client.post(f"/sessions/{session_id}/undo").json()
    assert undone["day"] == 0

    removed = client.delete(f"/sessions/{session_id}/outposts/{command_id}").json()
    assert len(removed["outposts"]) == 1
    assert removed["budget"] == pytest.approx(500 - 100 - 80 + 50)


def test_undo_on_empty_history_conflicts(client, session_id):
    assert client.post(f"/sessions/{session_id}/undo").status_code == 409


def test_unknown_ids(client, session_id):
    assert client.get("/sessions/missing").status_code == 404
    response = client.patch(f"/sessions/{session_id}/outposts/missing", json={"x": 1, "y": 1})
    assert response.status_code == 404
    assert client.delete(f"/sessions/{session_id}/outposts/missing").status_code == 404


def test_invalid_outpost_type(client, session_id):
    response = client.post(
        f"/sessions/{session_id}/outposts", json={"type": "spaceport", "x": 1, "y": 1}
    )
    assert response.status_code == 422


def test_map_and_cells(client, session_id):
    layer = client.get(f"/sessions/{session_id}/map", params={"layer": "resource"}).json()
    assert layer["layer"] == "resource"
    assert len(layer["values"]) == 60

    cell = client.get(f"/sessions/{session_id}/cells/3/4").json()
    assert cell["x"] == 3 and cell["y"] == 4
    assert 1.0 <= cell["terrain"]["build_cost"] <= 3.0
    assert client.get(f"/sessions/{session_id}/cells/80/0").status_code == 404


def test_delete_session(client, session_id):
    assert client.delete(f"/sessions/{session_id}").status_code == 204
    assert client.get(f"/sessions/{session_id}").status_code == 404


def test_placement_preview_does_not_commit(client, session_id):
    response = client.post(
        f"/sessions/{session_id}/outposts/preview", json={"type": "command", "x": -1, "y": 0}
    )
    assert response.status_code == 200
    assert response.json()["warnings"][0]["code"] == "out_of_bounds"
    body = client.get(f"/sessions/{session_id}").json()
    assert body["outposts"] == []
    assert body["budget"] == 500.0


def test_unaffordable_placement_conflicts(client, session_id):
    for _ in range(5):
        client.post(f"/sessions/{session_id}/outposts", json={"type": "command", "x": 1, "y": 1})
    body = client.get(f"/sessions/{session_id}").json()
    assert body["budget"] == 0.0
    assert body["affordable"] == {
        "command": False,
        "power": False,
        "mining": False,
        "research": False,
        "comm": False,
    }
    response = client.post(
        f"/sessions/{session_id}/outposts", json={"type": "mining", "x": 1, "y": 1}
    )
    assert response.status_code == 409
    assert len(client.get(f"/sessions/{session_id}").json()["outposts"]) == 5


def test_previews_conflict_after_the_mission_ends(client, session_id):
    for _ in range(28):
        client.post(f"/sessions/{session_id}/turn")
    response = client.post(
        f"/sessions/{session_id}/outposts/preview", json={"type": "command", "x": 1, "y": 1}
    )
    assert response.status_code == 409
