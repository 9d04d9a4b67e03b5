from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from main import create_app
from services import PersistenceFailure

PUSH_DAY = {
    "workout_id": "push-day",
    "title": "Push Day",
    "exercises": [
        {"exercise_id": "bench-press-barbell", "sets": 3, "reps": "8"},
        {"exercise_id": "push-ups", "sets": 2, "reps": "15", "bodyweight": True},
    ],
}


@pytest.fixture
def client(engine, clock):
    app = create_app(engine=engine, clock=clock)
    with TestClient(app) as client:
        yield client


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


def test_root_lists_endpoints(client):
    body = client.get("/").json()
    assert set(body["endpoints"]) == {"sessions", "rest_timer", "analytics", "predictions"}


def test_workout_flow(client, clock):
    r = client.post("/sessions", json=PUSH_DAY)
    assert r.status_code == 201
    assert r.json()["state"] == "active"

    for _ in range(3):
        r = client.post("/sessions/active/sets", json={"weight": 135, "reps": 8})
        assert r.status_code == 201

    body = client.get("/sessions/active").json()
    assert body["session"]["exercises"][0]["is_completed"] is True
    assert body["total_volume"] == 3240

    clock.advance(minutes=30)
    r = client.post("/sessions/active/finish")
    assert r.status_code == 200
    summary = r.json()["summary"]
    assert summary["total_sets"] == 3
    assert summary["duration_minutes"] == 30
    assert summary["personal_record_count"] == 1

    history = client.get("/sessions/history").json()
    assert history["count"] == 1

    progress = client.get("/analytics/progress/bench-press-barbell").json()
    assert progress["personal_record_weight"] == pytest.approx(171.0)


def test_invalid_set_is_rejected(client):
    client.post("/sessions", json=PUSH_DAY)
    r = client.post("/sessions/active/sets", json={"weight": 0, "reps": 8})
    assert r.status_code == 422
    assert r.json()["detail"]["accepted"] is False
    assert client.get("/sessions/active").json()["total_sets"] == 0


def test_set_operations_without_session_conflict(client):
    r = client.post("/sessions/active/sets", json={"weight": 135, "reps": 8})
    assert r.status_code == 409


def test_out_of_range_set_is_not_found(client):
    client.post("/sessions", json=PUSH_DAY)
    r = client.delete("/sessions/active/exercises/0/sets/3")
    assert r.status_code == 404


def test_edit_endpoints(client):
    client.post("/sessions", json=PUSH_DAY)
    client.post("/sessions/active/sets", json={"weight": 135, "reps": 8})
    client.post("/sessions/active/sets", json={"weight": 145, "reps": 8})

    r = client.put("/sessions/active/exercises/0/sets/1", json={"weight": 150, "reps": 6})
    assert r.json()["session"]["exercises"][0]["completed_sets"][1]["weight"] == 150

    r = client.delete("/sessions/active/exercises/0/sets/0")
    sets = r.json()["session"]["exercises"][0]["completed_sets"]
    assert [s["set_number"] for s in sets] == [1]

    r = client.post("/sessions/active/exercises", json={"exercise_id": "dips", "bodyweight": True})
    assert r.status_code == 201
    assert len(r.json()["session"]["exercises"]) == 3

    r = client.post("/sessions/active/exercises/2/jump")
    assert r.json()["session"]["current_exercise_index"] == 2
    assert client.post("/sessions/active/next").json()["moved"] is False


def test_cancel_needs_confirmation(client):
    client.post("/sessions", json=PUSH_DAY)
    client.post("/sessions/active/sets", json={"weight": 135, "reps": 8})

    r = client.post("/sessions/active/cancel", json={})
    assert r.json() == {"cancelled": False, "would_discard_progress": True, "state": "active"}

    r = client.post("/sessions/active/cancel", json={"confirmed": True})
    assert r.json()["cancelled"] is True
    assert client.get("/sessions/active").json()["session"] is None


def test_active_session_survives_restart(engine, clock):
    with TestClient(create_app(engine=engine, clock=clock)) as client:
        client.post("/sessions", json=PUSH_DAY)
        client.post("/sessions/active/sets", json={"weight": 135, "reps": 8})

    with TestClient(create_app(engine=engine, clock=clock)) as client:
        body = client.get("/sessions/active").json()
        assert body["state"] == "active"
        assert body["total_sets"] == 1


def test_rest_timer(client, clock):
    r = client.post("/rest-timer/start", json={"duration_seconds": 90})
    assert r.status_code == 201
    assert r.json()["remaining_seconds"] == 90

    clock.advance(seconds=45)
    assert client.get("/rest-timer").json() == {"resting": True, "remaining_seconds": 45, "formatted": "0:45"}

    assert client.post("/rest-timer/skip").json()["resting"] is False


def test_logging_a_set_can_start_rest(client):
    client.post("/sessions", json=PUSH_DAY)
    client.post("/sessions/active/sets", json={"weight": 135, "reps": 8, "rest_seconds": 120})
    assert client.get("/rest-timer").json()["remaining_seconds"] == 120


def test_rest_timer_storage_failure_is_unavailable(client, monkeypatch):
    client.post("/sessions", json=PUSH_DAY)

    def broken_save(state):
        raise PersistenceFailure("disk full")

    monkeypatch.setattr(client.app.state.storage, "save_rest_timer", broken_save)

    r = client.post("/sessions/active/sets", json={"weight": 135, "reps": 8, "rest_seconds": 120})
    assert r.status_code == 503
    # The set itself was logged before the timer failed
    assert client.get("/sessions/active").json()["total_sets"] == 1


def test_profile_and_percentile(client):
    assert client.get("/analytics/profile").json()["bodyweight"] == 180

    r = client.put("/analytics/profile", json={"bodyweight": 200, "gender": "male"})
    assert r.status_code == 200

    body = client.get("/analytics/percentile",
                      params={"exercise_id": "squat-barbell", "one_rep_max": 300}).json()
    assert body["percentile"] == 50
    assert body["tier"] == "B"
    assert body["next_tier"] == "A"
    assert body["points_needed"] == 20


def test_tier_endpoint(client):
    body = client.get("/analytics/tier", params={"value": 85}).json()
    assert body["tier"] == "S"
    assert body["max_tier_reached"] is True


def test_record_lift_and_predict(client):
    for weight in (185, 195, 200, 210):
        r = client.post("/analytics/lifts", json={"exercise_id": "squat-barbell", "weight": weight, "reps": 5})
        assert r.status_code == 201
    assert r.json()["new_personal_record"] is True
    assert r.json()["category"] == "main"

    history = client.get("/analytics/lifts/squat-barbell").json()
    assert history["count"] == 4

    r = client.get("/predictions/strength/squat-barbell")
    assert r.status_code == 200
    body = r.json()
    assert body["data_points"] == 4
    assert set(body["predictions"]) == {"30", "90", "180", "365"}

    r = client.get("/predictions/goal/squat-barbell", params={"target_weight": 100})
    assert r.json()["prediction"]["status"] == "already_achieved"


def test_recorded_lift_uses_service_clock(client, clock):
    client.post("/analytics/lifts", json={"exercise_id": "squat-barbell", "weight": 225, "reps": 5})

    lift = client.get("/analytics/lifts/squat-barbell").json()["lifts"][0]
    assert datetime.fromisoformat(lift["recorded_at"]) == clock()


def test_predictions_need_history(client):
    assert client.get("/predictions/strength/squat-barbell").status_code == 404
    assert client.get("/analytics/progress/squat-barbell").status_code == 404


def test_unknown_model_is_bad_request(client):
    r = client.post("/predictions/series", json={"values": [200, 210], "models": ["crystal-ball"]})
    assert r.status_code == 400


def test_series_prediction(client):
    r = client.post("/predictions/series", json={"values": [200, 210, 215, 225], "horizons": [30]})
    assert r.status_code == 200
    assert "30" in r.json()["ensemble"]


def test_one_rep_max_calculator(client):
    body = client.get("/predictions/1rm/calculate", params={"weight": 225, "reps": 5, "formula": "epley"}).json()
    assert body["estimated_1rm"] == 262.5
    assert client.get("/analytics/1rm", params={"weight": 225, "reps": 5}).json()["estimated_1rm"] == 262.5
