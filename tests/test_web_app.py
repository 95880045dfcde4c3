"""Tests for the Flask JSON API."""

import pytest

from sideline_rotation.ui.web_app import WebAppState, create_app

LINEUP_7 = {
    "leftPair.defender": "p1", "leftPair.attacker": "p2",
    "rightPair.defender": "p3", "rightPair.attacker": "p4",
    "subPair.defender": "p5", "subPair.attacker": "p6",
}


@pytest.fixture
def client():
    app = create_app({"TESTING": True}, app_state=WebAppState())
    return app.test_client()


@pytest.fixture
def configured(client):
    response = client.post("/api/config", json={
        "players": [f"Player {i}" for i in range(1, 8)],
        "team_config": {"format": "5v5", "substitution_type": "pairs"},
        "period_goalies": {"1": "p7"},
        "period_count": 2,
    })
    assert response.status_code == 200
    return client


def fill_lineup(client):
    for slot_id, player_id in LINEUP_7.items():
        response = client.post("/api/formation/slot", json={"slot_id": slot_id, "player_id": player_id})
        assert response.get_json()["success"] is True


def test_state_requires_configured_match(client):
    response = client.get("/api/state")
    assert response.status_code == 409
    assert response.get_json()["success"] is False


def test_config_options(client):
    data = client.get("/api/config/options?format=5v5&squad_size=7").get_json()
    assert data["sections_enabled"] is True
    assert data["available_substitution_types"] == ["individual", "pairs"]
    assert data["formats"] == ["5v5", "7v7"]
    assert data["period_options"] == [1, 2, 3, 4]

    data = client.get("/api/config/options?format=5v5&squad_size=3").get_json()
    assert data["sections_enabled"] is False


def test_configure_creates_pairs_session(configured):
    state = configured.get("/api/state").get_json()["state"]
    assert state["team_mode"] == "pairs_7"
    assert state["formation"]["goalie"] == "p7"
    assert state["is_complete"] is False
    assert state["period_goalies"] == {"1": "p7", "2": "p7"}


def test_invalid_config_is_rejected(client):
    response = client.post("/api/config", json={"players": ["A", "B", "C"]})
    assert response.status_code == 400


def test_goalie_swap_scenario(configured):
    fill_lineup(configured)
    response = configured.post("/api/goalie", json={"player_id": "p3"})
    state = response.get_json()["state"]

    assert state["formation"]["goalie"] == "p3"
    assert state["formation"]["rightPair"] == {"defender": "p7", "attacker": "p4"}
    assert "p7" in state["rotation_queue"]
    assert "p3" not in state["rotation_queue"]


def test_unknown_player_is_404(configured):
    response = configured.post("/api/goalie", json={"player_id": "p99"})
    assert response.status_code == 404
    assert response.get_json()["player_id"] == "p99"


def test_start_blocked_until_complete(configured):
    response = configured.post("/api/period/start", json={"ts": 0})
    assert response.status_code == 409
    assert response.get_json()["error"].startswith("Please complete the team formation")

    fill_lineup(configured)
    response = configured.post("/api/period/start", json={"ts": 0})
    assert response.status_code == 200
    assert response.get_json()["state"]["period_active"] is True


def test_pair_substitution_and_period_end(configured):
    fill_lineup(configured)
    configured.post("/api/period/start", json={"ts": 0})

    response = configured.post("/api/substitute", json={"ts": 300})
    data = response.get_json()
    assert data["substitution"]["players_off"] == ["p1", "p2"]
    assert data["state"]["formation"]["leftPair"] == {"defender": "p5", "attacker": "p6"}
    assert data["state"]["formation"]["subPair"] == {"defender": "p1", "attacker": "p2"}

    configured.post("/api/clock/pause", json={"ts": 400})
    configured.post("/api/clock/resume", json={"ts": 500})
    response = configured.post("/api/period/end", json={"ts": 600})
    data = response.get_json()
    assert data["log_entry"]["period_number"] == 1
    assert data["state"]["current_period"] == 2


def test_undo_formation_edit(configured):
    configured.post("/api/formation/slot", json={"slot_id": "leftPair.defender", "player_id": "p1"})
    response = configured.post("/api/undo")
    assert response.get_json()["state"]["formation"]["leftPair"]["defender"] == ""

    response = configured.post("/api/undo")
    assert response.status_code == 400


def test_recommendation_round_trip(configured):
    data = configured.get("/api/recommendation").get_json()
    assert data["recommendation"]["formation"]["goalie"] == "p7"

    response = configured.post("/api/recommendation")
    assert response.get_json()["state"]["is_complete"] is True


def test_report_endpoints(configured):
    fill_lineup(configured)
    configured.post("/api/period/start", json={"ts": 0})
    configured.post("/api/period/end", json={"ts": 900})

    report = configured.get("/api/report").get_json()["report"]
    assert report["periods_played"] == 1
    assert report["max_field_seconds"] == 900

    response = configured.get("/api/report/csv")
    assert response.mimetype == "text/csv"
    assert b"Sideline Rotation Report" in response.data


def test_non_numeric_input_is_coerced(client):
    response = client.post("/api/config", json={
        "players": [f"Player {i}" for i in range(1, 7)],
        "period_goalies": {"first": "p1"},
        "period_duration_min": "long",
    })
    assert response.status_code == 200
    assert response.get_json()["state"]["period_goalies"]["1"] == "p1"

    client.post("/api/recommendation")
    client.post("/api/period/start", json={"ts": 0})
    response = client.post("/api/substitute", json={"ts": 60, "count": "two"})
    assert response.status_code == 200
    assert len(response.get_json()["substitution"]["players_off"]) == 1


def test_period_goalies_must_be_a_mapping(client):
    response = client.post("/api/config", json={
        "players": [f"Player {i}" for i in range(1, 7)],
        "period_goalies": ["p1"],
    })
    assert response.status_code == 400


def test_non_numeric_squad_size_is_rejected(client):
    response = client.post("/api/config", json={
        "players": [f"Player {i}" for i in range(1, 7)],
        "team_config": {"squad_size": "many"},
    })
    assert response.status_code == 400
