"""Tests for the dashboard and gamification endpoints."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from jose import jwt
from sqlalchemy.exc import OperationalError

from school_erp.config import settings
from school_erp.core.security import ALGORITHM
from school_erp.db.models import UserPoints
from school_erp.utils.exceptions import StorageError

COMPLETE_ACTION_URL = "/api/v1/dashboard/actions/complete"
COMPLETE_TASK_URL = "/api/v1/gamification/tasks/complete"
RECENT_URL = "/api/v1/dashboard/recent-activities"
STATS_URL = "/api/v1/gamification/stats"


def test_complete_action_credits_points(client, auth_headers, db_session):
    response = client.post(
        COMPLETE_ACTION_URL,
        json={"actionType": "student_add", "metadata": {"studentId": "s-1"}},
        headers=auth_headers("staff-1"),
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["points"] == 25
    assert payload["message"] == "Action completed! +25 points earned."
    assert payload["bonusPoints"] == 0
    assert payload["completed"] == []

    record = db_session.query(UserPoints).filter_by(user_id="staff-1").one()
    assert record.total_points == 25
    assert record.school_id == "school-1"


def test_complete_action_reports_completed_milestones(client, auth_headers):
    response = client.post(
        COMPLETE_ACTION_URL,
        json={"actionType": "iso_submission"},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["points"] == 40
    assert payload["bonusPoints"] == 500
    assert payload["completed"] == [
        {
            "kind": "achievement",
            "milestoneId": "iso_compliance",
            "title": "ISO Champion",
            "progress": 1,
            "target": 1,
            "bonusPoints": 500,
        }
    ]


def test_complete_action_accepts_unknown_action_type(client, auth_headers):
    response = client.post(
        COMPLETE_ACTION_URL, json={"actionType": "custom_foo"}, headers=auth_headers()
    )

    assert response.status_code == 200
    assert response.json()["points"] == 10


def test_complete_action_requires_action_type(client, auth_headers, db_session):
    for body in ({}, {"actionType": ""}, {"actionType": "   ", "metadata": {}}):
        response = client.post(COMPLETE_ACTION_URL, json=body, headers=auth_headers())

        assert response.status_code == 400
        assert response.json()["detail"] == "Action type is required"

    assert db_session.query(UserPoints).count() == 0


def test_complete_action_rejects_non_object_metadata(client, auth_headers):
    response = client.post(
        COMPLETE_ACTION_URL,
        json={"actionType": "daily_login", "metadata": ["a", "b"]},
        headers=auth_headers(),
    )

    assert response.status_code == 422
    payload = response.json()
    assert payload["success"] is False
    assert payload["message"] == "Invalid request body"
    assert "metadata" in payload["detail"][0]["loc"]


def test_complete_action_hides_storage_failures(client, auth_headers, db_session):
    with patch(
        "school_erp.core.gamification.repository.GamificationRepository.increment_achievement",
        side_effect=StorageError("Gamification storage operation failed: increment_achievement"),
    ):
        response = client.post(
            COMPLETE_ACTION_URL, json={"actionType": "student_add"}, headers=auth_headers()
        )

    assert response.status_code == 500
    assert response.json()["detail"] == "An error occurred"
    assert db_session.query(UserPoints).count() == 0


def test_endpoints_require_authentication(client):
    assert client.post(COMPLETE_ACTION_URL, json={"actionType": "daily_login"}).status_code == 401
    assert client.get(STATS_URL).status_code == 401
    assert client.get(RECENT_URL, headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401


def test_non_access_tokens_are_rejected(client):
    expire = datetime.now(timezone.utc) + timedelta(minutes=5)
    refresh = jwt.encode(
        {"sub": "staff-1", "type": "refresh", "exp": expire}, settings.SECRET_KEY, algorithm=ALGORITHM
    )
    anonymous = jwt.encode({"type": "access", "exp": expire}, settings.SECRET_KEY, algorithm=ALGORITHM)

    for token in (refresh, anonymous):
        response = client.get(STATS_URL, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


def test_complete_task_returns_level_snapshot(client, auth_headers):
    response = client.post(
        COMPLETE_TASK_URL,
        json={"taskType": "training_complete", "metadata": {"trainingId": 7}},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["data"] == {
        "pointsEarned": 50,
        "totalPoints": 50,
        "level": 1,
        "levelProgress": 5.0,
        "pointsToNextLevel": 950,
    }


def test_complete_task_requires_task_type(client, auth_headers):
    response = client.post(COMPLETE_TASK_URL, json={"metadata": {}}, headers=auth_headers())

    assert response.status_code == 400
    assert response.json()["detail"] == "Action type is required"


def test_recent_activities_newest_first(client, auth_headers):
    headers = auth_headers("staff-2")
    for action_type in ("daily_login", "document_upload", "event_create"):
        client.post(COMPLETE_ACTION_URL, json={"actionType": action_type}, headers=headers)
    client.post(COMPLETE_ACTION_URL, json={"actionType": "club_join"}, headers=auth_headers("staff-3"))

    response = client.get(RECENT_URL, headers=headers)

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert [item["type"] for item in payload["data"]] == [
        "event_create",
        "document_upload",
        "daily_login",
    ]
    assert payload["data"][0]["description"] == "Created an event"
    assert payload["data"][0]["points"] == 30


def test_stats_refresh_after_action(client, auth_headers):
    headers = auth_headers("staff-4")

    before = client.get(STATS_URL, headers=headers)
    assert before.status_code == 200
    stats = before.json()["stats"]
    assert stats["totalPoints"] == 0
    assert stats["level"] == 1
    assert stats["pointsToNextLevel"] == 1000
    assert stats["monthlyGoal"] == 5000
    assert {"rank", "achievements", "activeChallenges", "streak", "weeklyProgress", "recentActivities"} <= set(stats)

    client.post(COMPLETE_ACTION_URL, json={"actionType": "daily_login"}, headers=headers)

    after = client.get(STATS_URL, headers=headers).json()["stats"]
    assert after["totalPoints"] == 10
    assert after["streak"] == 1
    assert after["recentActivities"][0]["type"] == "daily_login"
    daily = next(item for item in after["activeChallenges"] if item["id"] == "daily_login")
    assert daily["progress"] == 1
    assert daily["title"] == "Daily Dedication"


def test_rank_is_scoped_to_school(client, auth_headers):
    client.post(
        COMPLETE_ACTION_URL,
        json={"actionType": "training_complete"},
        headers=auth_headers("leader", school_id="school-9"),
    )
    client.post(
        COMPLETE_ACTION_URL,
        json={"actionType": "message_send"},
        headers=auth_headers("follower", school_id="school-1"),
    )

    stats = client.get(STATS_URL, headers=auth_headers("follower", school_id="school-1")).json()["stats"]

    assert stats["rank"] == 1


def test_complete_action_hides_commit_failures(client, auth_headers, db_session):
    failure = OperationalError("COMMIT", {}, Exception("connection lost"))

    with patch.object(db_session, "commit", side_effect=failure):
        response = client.post(
            COMPLETE_ACTION_URL, json={"actionType": "document_upload"}, headers=auth_headers()
        )

    assert response.status_code == 500
    assert response.json()["detail"] == "An error occurred"
    assert db_session.query(UserPoints).count() == 0
