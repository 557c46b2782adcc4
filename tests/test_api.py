"""
Tests for the HTTP API.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from rehearsal.app import create_app
from tests.conftest import GOOD_ANSWER

CONFIG = {"question_categories": ["teamwork", "problem-solving"], "duration": 15}


@pytest.fixture
def client():
    with TestClient(create_app()) as test_client:
        yield test_client


def start(client: TestClient, user_id: str = "user-1") -> dict:
    response = client.post("/api/sessions", json={"user_id": user_id, "config": CONFIG})
    assert response.status_code == 201
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestSessionRoutes:

    def test_start_session(self, client):
        session = start(client)
        assert session["status"] == "active"
        assert session["user_id"] == "user-1"
        assert len(session["questions"]) == 5
        assert session["responses"] == []

        fetched = client.get(f"/api/sessions/{session['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["id"] == session["id"]

    def test_invalid_config(self, client):
        response = client.post(
            "/api/sessions",
            json={"user_id": "user-1", "config": {"question_categories": [], "duration": 500}},
        )
        assert response.status_code == 422
        assert len(response.json()["detail"]["errors"]) == 2

    def test_submit_and_progress(self, client):
        session = start(client)
        first, second = session["questions"][0], session["questions"][1]

        response = client.post(
            f"/api/sessions/{session['id']}/responses",
            json={"question_id": first["id"], "text": GOOD_ANSWER, "response_time": 90},
        )
        assert response.status_code == 200
        result = response.json()
        assert result["response"]["analysis"]["overall_score"] > 0
        assert result["next_question"]["id"] == second["id"]
        assert result["session_complete"] is False

        progress = client.get(f"/api/sessions/{session['id']}/progress").json()
        assert progress["progress"]["completed"] == 1
        assert progress["current_question"]["id"] == second["id"]

    def test_default_duration(self, client):
        response = client.post(
            "/api/sessions",
            json={"user_id": "user-1", "config": {"question_categories": ["teamwork"]}},
        )
        assert response.status_code == 201
        assert response.json()["config"]["duration"] == 30

    def test_follow_ups(self, client):
        session = start(client)
        first = session["questions"][0]
        text = GOOD_ANSWER + " It involved " + ", ".join(first["follow_up_triggers"]) + "."
        result = client.post(
            f"/api/sessions/{session['id']}/responses",
            json={"question_id": first["id"], "text": text},
        ).json()

        response = client.post(
            f"/api/sessions/{session['id']}/responses/{result['response']['id']}/follow-ups"
        )
        assert response.status_code == 200
        follow_ups = response.json()
        assert [q["details"]["trigger"] for q in follow_ups] == first["follow_up_triggers"]
        assert all(q["type"] == "follow-up" for q in follow_ups)

        missing = client.post(f"/api/sessions/{session['id']}/responses/missing/follow-ups")
        assert missing.status_code == 404

    def test_wrong_question(self, client):
        session = start(client)
        response = client.post(
            f"/api/sessions/{session['id']}/responses",
            json={"question_id": session["questions"][1]["id"], "text": "An answer."},
        )
        assert response.status_code == 422

    def test_unknown_session(self, client):
        assert client.get("/api/sessions/missing").status_code == 404
        response = client.post(
            "/api/sessions/missing/responses",
            json={"question_id": "q1", "text": "An answer."},
        )
        assert response.status_code == 404

    def test_paused_session_rejects_answers(self, client):
        session = start(client)
        paused = client.post(f"/api/sessions/{session['id']}/pause")
        assert paused.json()["status"] == "paused"

        response = client.post(
            f"/api/sessions/{session['id']}/responses",
            json={"question_id": session["questions"][0]["id"], "text": "An answer."},
        )
        assert response.status_code == 409

        resumed = client.post(f"/api/sessions/{session['id']}/resume")
        assert resumed.json()["status"] == "active"

    def test_complete_and_delete(self, client):
        session = start(client)
        client.post(
            f"/api/sessions/{session['id']}/responses",
            json={"question_id": session["questions"][0]["id"], "text": GOOD_ANSWER},
        )

        summary = client.post(f"/api/sessions/{session['id']}/complete")
        assert summary.status_code == 200
        assert summary.json()["questions_answered"] == 1
        assert client.post(f"/api/sessions/{session['id']}/complete").status_code == 409

        streak = client.get("/api/users/user-1/streak").json()
        assert streak["current_streak"] == 1

        deleted = client.delete(f"/api/sessions/{session['id']}")
        assert deleted.json() == {"session_id": session["id"], "deleted": True}
        assert client.get(f"/api/sessions/{session['id']}").status_code == 404


class TestScheduleRoutes:

    def test_schedule_and_cancel(self, client):
        when = datetime.now(timezone.utc) + timedelta(days=1)
        response = client.post(
            "/api/schedule",
            json={"user_id": "user-1", "scheduled_time": when.isoformat(), "config": CONFIG},
        )
        assert response.status_code == 201
        item = response.json()
        assert item["status"] == "scheduled"

        listed = client.get("/api/users/user-1/schedule").json()
        assert [i["id"] for i in listed] == [item["id"]]

        cancelled = client.delete(f"/api/schedule/{item['id']}")
        assert cancelled.json()["status"] == "cancelled"
        assert client.delete(f"/api/schedule/{item['id']}").status_code == 409
        assert client.get("/api/users/user-1/schedule").json() == []

    def test_past_time_rejected(self, client):
        when = datetime.now(timezone.utc) - timedelta(hours=1)
        response = client.post(
            "/api/schedule",
            json={"user_id": "user-1", "scheduled_time": when.isoformat(), "config": CONFIG},
        )
        assert response.status_code == 422

    def test_update(self, client):
        when = datetime.now(timezone.utc) + timedelta(days=1)
        item = client.post(
            "/api/schedule",
            json={"user_id": "user-1", "scheduled_time": when.isoformat(), "config": CONFIG},
        ).json()

        response = client.patch(f"/api/schedule/{item['id']}", json={"notes": "Focus on STAR"})
        assert response.status_code == 200
        assert response.json()["notes"] == "Focus on STAR"

    def test_unknown_item(self, client):
        assert client.get("/api/schedule/missing").status_code == 404


class TestUserRoutes:

    def test_streak_for_new_user(self, client):
        streak = client.get("/api/users/nobody/streak").json()
        assert streak["current_streak"] == 0
        assert streak["longest_streak"] == 0

    def test_recommendations(self, client):
        recommendations = client.get("/api/users/nobody/recommendations").json()
        assert [r["type"] for r in recommendations] == ["frequency"]

    def test_analytics(self, client):
        response = client.get("/api/users/nobody/analytics", params={"timeframe": "week"})
        assert response.status_code == 200
        body = response.json()
        assert body["timeframe"] == "week"
        assert body["total_sessions"] == 0

    def test_unknown_timeframe(self, client):
        response = client.get("/api/users/nobody/analytics", params={"timeframe": "decade"})
        assert response.status_code == 422

    def test_reminder_preference(self, client):
        assert client.get("/api/users/prefs-user/reminder-preference").json()["frequency"] == "none"

        response = client.put("/api/users/prefs-user/reminder-preference", json={"frequency": "weekly"})
        assert response.status_code == 200
        assert response.json()["frequency"] == "weekly"
        assert client.get("/api/users/prefs-user/reminder-preference").json()["frequency"] == "weekly"

        invalid = client.put("/api/users/prefs-user/reminder-preference", json={"frequency": "hourly"})
        assert invalid.status_code == 422
