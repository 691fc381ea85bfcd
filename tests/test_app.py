import math

import pytest
from fastapi.testclient import TestClient

from pi_server.app import create_app
from pi_server.settings import Settings


@pytest.fixture
def client():
    settings = Settings(batch_size=250, default_target=1000, max_target=99_999, seed=123)
    with TestClient(create_app(settings)) as c:
        yield c


def _drain(client, limit=10_000):
    state = client.get("/api/simulation").json()
    frames = 0
    while state["is_running"] and frames < limit:
        resp = client.post("/api/simulation/advance", json={})
        assert resp.status_code == 200
        state = resp.json()
        frames += 1
    return state, frames


def test_health_and_config(client):
    health = client.get("/api/health").json()
    assert health["ok"] is True
    assert health["phase"] == "idle"
    assert client.get("/api/config").json() == {
        "batch_size": 250,
        "default_target": 1000,
        "max_target": 99_999,
        "fps": 60.0,
    }


def test_landing_page_is_not_cached(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "text/html" in resp.headers["content-type"]
    assert resp.headers["cache-control"].startswith("no-store")


def test_initial_state(client):
    assert client.get("/api/simulation").json() == {
        "samples_target": 1000,
        "samples_done": 0,
        "inside_count": 0,
        "estimate": None,
        "is_running": False,
        "phase": "idle",
        "abs_error": None,
    }


def test_full_run_reaches_target(client):
    started = client.post("/api/simulation/start", json={"samples_target": 1100}).json()
    assert started["is_running"] is True
    assert started["phase"] == "running"

    state, frames = _drain(client)
    assert frames == 5
    assert state["samples_done"] == 1100
    assert state["phase"] == "reached_target"
    assert state["estimate"] == pytest.approx(4 * state["inside_count"] / 1100)
    assert state["abs_error"] == pytest.approx(abs(math.pi - state["estimate"]))


def test_start_without_body_uses_current_target(client):
    resp = client.post("/api/simulation/start")
    assert resp.status_code == 200
    assert resp.json()["samples_target"] == 1000


def test_start_with_zero_target_is_rejected(client):
    resp = client.post("/api/simulation/start", json={"samples_target": 0})
    assert resp.status_code == 422
    state = client.get("/api/simulation").json()
    assert state["is_running"] is False
    assert state["samples_target"] == 1000


def test_start_above_max_target_is_rejected(client):
    resp = client.post("/api/simulation/start", json={"samples_target": 100_000})
    assert resp.status_code == 422


def test_advance_when_idle_conflicts(client):
    resp = client.post("/api/simulation/advance", json={})
    assert resp.status_code == 409
    assert "not running" in resp.json()["detail"]


def test_advance_with_custom_and_invalid_batch(client):
    client.post("/api/simulation/start", json={"samples_target": 100})
    state = client.post("/api/simulation/advance", json={"batch_size": 30}).json()
    assert state["samples_done"] == 30
    assert client.post("/api/simulation/advance", json={"batch_size": 0}).status_code == 422
    assert client.get("/api/simulation").json()["samples_done"] == 30


def test_pause_then_advance_conflicts(client):
    client.post("/api/simulation/start", json={})
    client.post("/api/simulation/advance", json={})
    paused = client.post("/api/simulation/pause").json()
    assert paused["is_running"] is False
    assert paused["samples_done"] == 250
    assert client.post("/api/simulation/pause").json() == paused
    assert client.post("/api/simulation/advance", json={}).status_code == 409


def test_reset_clears_and_overrides_target(client):
    client.post("/api/simulation/start", json={})
    client.post("/api/simulation/advance", json={})
    state = client.post("/api/simulation/reset", json={}).json()
    assert state["samples_done"] == 0
    assert state["estimate"] is None
    assert state["is_running"] is False
    assert state["samples_target"] == 1000

    state = client.post("/api/simulation/reset", json={"samples_target": 0}).json()
    assert state["samples_target"] == 0
    assert client.post("/api/simulation/start").status_code == 422


def test_reset_rejects_out_of_range_targets(client):
    assert client.post("/api/simulation/reset", json={"samples_target": -3}).status_code == 422
    assert client.post("/api/simulation/reset", json={"samples_target": 1_000_000}).status_code == 422


def test_converges_over_http(client):
    client.post("/api/simulation/start", json={"samples_target": 99_999})
    state, _ = _drain(client)
    assert state["samples_done"] == 99_999
    assert abs(state["estimate"] - math.pi) < 0.05


def test_start_after_reaching_target_runs_again(client):
    client.post("/api/simulation/start", json={"samples_target": 500})
    first, _ = _drain(client)
    assert first["phase"] == "reached_target"

    restarted = client.post("/api/simulation/start", json={"samples_target": 500}).json()
    assert restarted["is_running"] is True
    assert restarted["samples_done"] == 0
    second, frames = _drain(client)
    assert frames == 2
    assert second["samples_done"] == 500


def test_landing_page_clears_frame_handle_when_run_stops(client):
    page = client.get("/").text
    assert "frameId = s.is_running ? requestAnimationFrame(step) : null;" in page


def test_request_validation_detail_is_flattened_by_landing_page(client):
    resp = client.post("/api/simulation/start", json={"samples_target": "lots"})
    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert isinstance(detail, list)
    assert all("msg" in item for item in detail)

    page = client.get("/").text
    assert "Array.isArray(detail)" in page
    assert "errorDetail(data.detail)" in page
