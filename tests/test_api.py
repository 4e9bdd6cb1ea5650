"""API-level tests for the Flask app."""

import pytest

from app import app

NOW = "2026-10-17T10:31:00+00:00"


@pytest.fixture(autouse=True)
def env_setup(monkeypatch):
    for var in ("BAC_GRAMS_PER_STANDARD", "BAC_ELIMINATION_POLICY", "BAC_LEGAL_TARGET", "BAC_DISPLAY_TIMEZONE"):
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def evaluate_body(**overrides):
    body = {
        "profile": {"weight_kg": 70, "sex": "male"},
        "drinks": [{"id": "a", "standards": 1, "consumed_complete_at": "2026-10-17T10:00:00Z"}],
        "now": NOW,
    }
    body.update(overrides)
    return body


def test_healthz(client):
    res = client.get("/healthz")
    assert res.status_code == 200
    assert res.get_json() == {"ok": True}


def test_drink_types(client):
    res = client.get("/api/drink-types")
    keys = [k for k, _ in res.get_json()["drink_types"]]
    assert "beer" in keys


def test_evaluate_single_drink(client):
    res = client.post("/api/evaluate", json=evaluate_body())
    assert res.status_code == 200
    data = res.get_json()
    assert data["current_bac"] == pytest.approx(0.0133, abs=1e-4)
    assert data["is_rising"] is False
    assert data["time_to_legal_hours"] == 0
    assert data["time_to_sober_hours"] == pytest.approx(0.88, abs=0.03)
    assert data["timeline"]
    assert data["drink_markers"][0]["label"] == "D1"
    assert data["drinks"][0]["status"] == "eliminating"
    assert data["drive_advice"]["status"] == "caution"
    assert data["events"]["current"] is not None


def test_evaluate_empty_drinks(client):
    res = client.post("/api/evaluate", json=evaluate_body(drinks=[]))
    assert res.status_code == 200
    data = res.get_json()
    assert data["current_bac"] == 0
    assert data["timeline"] == []
    assert data["is_rising"] is False


def test_evaluate_config_override(client):
    us = client.post("/api/evaluate", json=evaluate_body(config={"grams_per_standard": 14})).get_json()
    au = client.post("/api/evaluate", json=evaluate_body()).get_json()
    assert us["current_bac"] > au["current_bac"]


@pytest.mark.parametrize("body", [
    evaluate_body(profile={"weight_kg": 0, "sex": "male"}),
    evaluate_body(profile={"weight_kg": 70, "sex": "robot"}),
    evaluate_body(drinks=[{"standards": 0, "consumed_complete_at": "2026-10-17T10:00:00Z"}]),
    evaluate_body(drinks=[{"standards": 1, "consumed_complete_at": "last night"}]),
    evaluate_body(drinks=["beer"]),
    evaluate_body(config={"absorption_window_minutes": -5}),
    evaluate_body(config=["nope"]),
    evaluate_body(config={"search_horizon_hours": "inf"}),
    evaluate_body(config={"peak_lookahead_hours": 1e6}),
    evaluate_body(config={"peak_grid_minutes": 1e-6}),
    evaluate_body(config={"absorption_window_minutes": 1e12}),
    evaluate_body(now="soon"),
])
def test_evaluate_rejects_invalid_input(client, body):
    res = client.post("/api/evaluate", json=body)
    assert res.status_code == 400
    assert "error" in res.get_json()


def test_state_unconfigured(client):
    res = client.get("/api/state")
    assert res.status_code == 200
    data = res.get_json()
    assert data["configured"] is False


def test_setup_clamps_and_parses(client):
    res = client.post("/api/setup", json={"weight_kg": "999", "is_male": "false"})
    assert res.status_code == 200
    data = res.get_json()
    assert data["weight_kg"] == 250.0
    assert data["sex"] == "female"


def test_drink_requires_setup(client):
    res = client.post("/api/drink", json={"standards": 1, "hours_ago": 0})
    assert res.status_code == 400
    assert "error" in res.get_json()


def test_drink_and_state_roundtrip(client):
    client.post("/api/setup", json={"weight_kg": 70, "is_male": True})
    add = client.post("/api/drink", json={"standards": 2, "hours_ago": 0.5, "now": NOW})
    assert add.status_code == 200
    assert add.get_json()["id"] == "d1"

    state = client.get("/api/state", query_string={"now": NOW})
    assert state.status_code == 200
    data = state.get_json()
    assert data["configured"] is True
    assert data["active"] is True
    assert data["drink_count"] == 1
    assert data["total_standards"] == 2
    assert data["current_bac"] > 0
    assert data["drive_advice"] is not None


def test_drink_by_type(client):
    client.post("/api/setup", json={"weight_kg": 70, "is_male": True})
    add = client.post("/api/drink", json={"drink_key": "spirit", "count": 2, "now": NOW})
    assert add.get_json()["standards"] == pytest.approx(1.89, abs=0.01)


def test_session_auto_closes_after_twelve_hours(client):
    client.post("/api/setup", json={"weight_kg": 70, "is_male": True})
    client.post("/api/drink", json={"standards": 2, "hours_ago": 0, "now": NOW})

    later = "2026-10-17T23:00:00+00:00"
    data = client.get("/api/state", query_string={"now": later}).get_json()
    assert data["active"] is False
    assert data["drink_count"] == 0

    client.post("/api/drink", json={"standards": 1, "hours_ago": 0, "now": later})
    data = client.get("/api/state", query_string={"now": later}).get_json()
    assert data["active"] is True
    assert data["drink_count"] == 1


def test_reset_keeps_profile_and_clears_drinks(client):
    client.post("/api/setup", json={"weight_kg": 60, "is_male": False})
    client.post("/api/drink", json={"standards": 1, "hours_ago": 0, "now": NOW})

    reset = client.post("/api/reset")
    assert reset.status_code == 200

    data = client.get("/api/state", query_string={"now": NOW}).get_json()
    assert data["configured"] is True
    assert data["sex"] == "female"
    assert data["drink_count"] == 0
