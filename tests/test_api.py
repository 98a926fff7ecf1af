"""Tests for the session HTTP API."""

import pytest
from fastapi.testclient import TestClient

from meshwarp_api.adapters import sessions as session_adapter
from meshwarp_api.main import app
from meshwarp_playground.editor import MSG_MASK_TOO_SMALL, MSG_OUTSIDE_MASK

SMALL_GRID = {"base_cols": 2, "base_rows": 2, "rule_string": ""}
LEFT_MASK = [[0, 0], [400, 0], [400, 600], [0, 600]]


@pytest.fixture
def client():
    session_adapter.reset_store()
    with TestClient(app) as test_client:
        yield test_client
    session_adapter.reset_store()


def _create(client: TestClient) -> dict:
    response = client.post("/sessions/", json={"name": "demo", "grid": SMALL_GRID})
    assert response.status_code == 201
    return response.json()


def test_index_lists_routes(client) -> None:
    body = client.get("/").json()
    assert body["name"] == "meshwarp-api"
    assert body["session_count"] == 0


def test_create_and_fetch_session(client) -> None:
    created = _create(client)
    assert created["vertex_count"] == 9
    assert created["cell_count"] == 4
    assert created["can_undo"] is False
    fetched = client.get(f"/sessions/{created['id']}").json()
    assert fetched["document"]["gridConfig"] == {"baseCols": 2, "baseRows": 2, "ruleString": ""}
    listed = client.get("/sessions/").json()
    assert [item["id"] for item in listed] == [created["id"]]


def test_create_without_body_uses_defaults(client) -> None:
    response = client.post("/sessions/")
    assert response.status_code == 201
    assert response.json()["name"] == "Untitled"


def test_unknown_session_is_404(client) -> None:
    assert client.get("/sessions/nope").status_code == 404
    assert client.delete("/sessions/nope").status_code == 404
    assert client.post("/sessions/nope/undo").status_code == 404


def test_delete_session(client) -> None:
    session_id = _create(client)["id"]
    assert client.delete(f"/sessions/{session_id}").status_code == 204
    assert client.get(f"/sessions/{session_id}").status_code == 404


def test_move_vertex_then_undo_redo(client) -> None:
    session_id = _create(client)["id"]
    moved = client.put(f"/sessions/{session_id}/vertices/4", json={"x": 620, "y": 5000}).json()
    vertex = moved["document"]["vertices"][4]
    assert (vertex["x"], vertex["y"]) == (620.0, 2000.0)
    assert moved["can_undo"] is True

    undone = client.post(f"/sessions/{session_id}/undo").json()
    assert undone["document"]["vertices"][4]["x"] == 500.0
    assert undone["can_redo"] is True
    redone = client.post(f"/sessions/{session_id}/redo").json()
    assert redone["document"]["vertices"][4]["x"] == 620.0


def test_move_unknown_vertex_is_404(client) -> None:
    session_id = _create(client)["id"]
    response = client.put(f"/sessions/{session_id}/vertices/99", json={"x": 1, "y": 1})
    assert response.status_code == 404


def test_mask_requires_three_points(client) -> None:
    session_id = _create(client)["id"]
    response = client.put(f"/sessions/{session_id}/mask", json={"points": [[0, 0], [10, 10]]})
    assert response.status_code == 400
    assert response.json()["detail"] == MSG_MASK_TOO_SMALL


def test_paint_respects_mask(client) -> None:
    session_id = _create(client)["id"]
    masked = client.put(f"/sessions/{session_id}/mask", json={"points": LEFT_MASK}).json()
    assert masked["has_mask"] is True

    rejected = client.post(f"/sessions/{session_id}/cells/1/paint", json={"color": "#3e3234"})
    assert rejected.status_code == 400
    assert rejected.json()["detail"] == MSG_OUTSIDE_MASK

    painted = client.post(f"/sessions/{session_id}/cells/0/paint", json={"color": "#3e3234"}).json()
    assert painted["document"]["cells"][0] == {"id": 0, "v_indices": [0, 1, 4, 3], "color": "#3e3234", "isFilled": True}
    toggled = client.post(f"/sessions/{session_id}/cells/0/paint", json={"color": "#3e3234"}).json()
    assert toggled["document"]["cells"][0]["isFilled"] is False
    assert toggled["document"]["cells"][0]["color"] is None


def test_paint_validates_color_and_cell(client) -> None:
    session_id = _create(client)["id"]
    assert client.post(f"/sessions/{session_id}/cells/0/paint", json={"color": "blue"}).status_code == 422
    assert client.post(f"/sessions/{session_id}/cells/40/paint").status_code == 404


def test_clear_mask_and_regenerate_keeps_mask(client) -> None:
    session_id = _create(client)["id"]
    client.put(f"/sessions/{session_id}/mask", json={"points": LEFT_MASK})
    regenerated = client.post(f"/sessions/{session_id}/grid", json={"base_cols": 3, "base_rows": 1, "rule_string": ""}).json()
    assert regenerated["vertex_count"] == 8
    assert regenerated["has_mask"] is True
    cleared = client.delete(f"/sessions/{session_id}/mask").json()
    assert cleared["has_mask"] is False


def test_grid_rejects_zero_columns(client) -> None:
    session_id = _create(client)["id"]
    response = client.post(f"/sessions/{session_id}/grid", json={"base_cols": 0})
    assert response.status_code == 422


def test_displacement_and_reset(client) -> None:
    session_id = _create(client)["id"]
    client.put(f"/sessions/{session_id}/vertices/0", json={"x": 54, "y": 50})
    colors = client.get(f"/sessions/{session_id}/displacement", params={"scale": 0.1}).json()
    assert colors["scale"] == 0.1
    # one corner moved by 4: mean 1.0 * 0.1 * 200 = 20
    assert colors["cells"][0] == {"id": 0, "color": "#141414"}
    assert colors["cells"][3]["color"] == "#000000"

    reset = client.post(f"/sessions/{session_id}/reset").json()
    assert reset["document"]["vertices"][0]["x"] == 50.0
    after = client.get(f"/sessions/{session_id}/displacement").json()
    assert all(cell["color"] == "#000000" for cell in after["cells"])


def test_grid_rejects_oversized_counts(client) -> None:
    session_id = _create(client)["id"]
    response = client.post(f"/sessions/{session_id}/grid", json={"base_cols": 10**12, "base_rows": 2})
    assert response.status_code == 422


def test_grid_drops_oversized_rule(client) -> None:
    session_id = _create(client)["id"]
    body = client.post(
        f"/sessions/{session_id}/grid", json={"base_cols": 1, "base_rows": 1, "rule_string": "C0:3000000"}
    ).json()
    assert body["vertex_count"] == 4
    assert body["cell_count"] == 1


@pytest.mark.parametrize("payload", [{"x": "nan", "y": 10}, {"x": 10, "y": "inf"}])
def test_move_vertex_rejects_non_finite(client, payload) -> None:
    session_id = _create(client)["id"]
    response = client.put(f"/sessions/{session_id}/vertices/0", json=payload)
    assert response.status_code == 422
    assert client.get(f"/sessions/{session_id}").json()["can_undo"] is False


def test_mask_rejects_non_finite_points(client) -> None:
    session_id = _create(client)["id"]
    response = client.put(f"/sessions/{session_id}/mask", json={"points": [[0, 0], ["nan", 5], [5, 5]]})
    assert response.status_code == 422


@pytest.mark.parametrize("scale", ["inf", "nan", "-1"])
def test_displacement_rejects_bad_scale(client, scale) -> None:
    session_id = _create(client)["id"]
    response = client.get(f"/sessions/{session_id}/displacement", params={"scale": scale})
    assert response.status_code == 422
