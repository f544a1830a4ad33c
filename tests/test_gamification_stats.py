"""Tests for the dashboard gamification summary."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from school_erp.core.gamification import GamificationEngine
from school_erp.db.models import GamificationActivity, UserPoints
from school_erp.schemas import CallerIdentity
from school_erp.services.gamification_stats import (
    GamificationStatsService,
    invalidate_stats_cache,
)


@pytest.fixture()
def service(db_session, fixed_clock) -> GamificationStatsService:
    return GamificationStatsService(db_session, clock=fixed_clock)


def log_activity(db, user_id: str, action_type: str, points: int, timestamp: datetime) -> None:
    db.add(
        GamificationActivity(
            user_id=user_id,
            action_type=action_type,
            description=action_type.replace("_", " "),
            points=points,
            details={},
            timestamp=timestamp,
        )
    )
    db.commit()


@pytest.mark.parametrize(
    "total,level,progress,remaining",
    [
        (0, 1, 0.0, 1000),
        (999, 1, 99.9, 1),
        (1000, 2, 0.0, 1000),
        (2500, 3, 50.0, 500),
    ],
)
def test_level_snapshot(service, total, level, progress, remaining):
    snapshot = service.level_snapshot(total)

    assert snapshot["level"] == level
    assert snapshot["level_progress"] == pytest.approx(progress)
    assert snapshot["points_to_next_level"] == remaining


def test_rank_counts_users_with_more_points_in_same_school(db_session, service):
    db_session.add_all(
        [
            UserPoints(user_id="u1", school_id="school-1", total_points=100),
            UserPoints(user_id="u2", school_id="school-1", total_points=300),
            UserPoints(user_id="u3", school_id="school-1", total_points=300),
            UserPoints(user_id="u4", school_id="school-2", total_points=1000),
        ]
    )
    db_session.commit()

    assert service.get_rank("u1", "school-1") == 3
    assert service.get_rank("u2", "school-1") == 1
    assert service.get_rank("u4", "school-2") == 1
    assert service.get_rank("u1") == 4
    assert service.get_rank("nobody", "school-1") == 1


def test_streak_counts_consecutive_login_days(db_session, service, fixed_now):
    for days_ago in (0, 1, 2, 4):
        log_activity(db_session, "u1", "daily_login", 10, fixed_now - timedelta(days=days_ago))
    # Second login on the same day counts once.
    log_activity(db_session, "u1", "daily_login", 10, fixed_now - timedelta(hours=2))
    log_activity(db_session, "u1", "document_upload", 15, fixed_now - timedelta(days=3))

    assert service.calculate_streak("u1", now=fixed_now) == 3


def test_streak_is_zero_without_login_today(db_session, service, fixed_now):
    log_activity(db_session, "u1", "daily_login", 10, fixed_now - timedelta(days=1))

    assert service.calculate_streak("u1", now=fixed_now) == 0


def test_weekly_progress_starts_on_sunday(db_session, service, fixed_now):
    sunday = datetime(2025, 3, 9, 0, 5, tzinfo=timezone.utc)
    log_activity(db_session, "u1", "event_create", 30, sunday)
    log_activity(db_session, "u1", "message_send", 5, fixed_now)
    log_activity(db_session, "u1", "club_join", 20, sunday - timedelta(minutes=10))

    assert service.get_weekly_progress("u1", now=fixed_now) == 35


def test_recent_activities_are_newest_first_and_limited(db_session, service, fixed_now):
    for minutes in range(12):
        log_activity(db_session, "u1", "message_send", 5, fixed_now - timedelta(minutes=minutes))
    log_activity(db_session, "u2", "daily_login", 10, fixed_now + timedelta(minutes=1))

    activities = service.get_recent_activities("u1")

    assert len(activities) == 10
    timestamps = [item.timestamp for item in activities]
    assert timestamps == sorted(timestamps, reverse=True)
    assert {item.type for item in activities} == {"message_send"}
    assert len(service.get_recent_activities("u1", limit=3)) == 3


def test_stats_for_new_user_do_not_create_records(db_session, service):
    stats = service.get_stats(CallerIdentity(user_id="fresh", school_id="school-1"))

    assert stats.total_points == 0
    assert stats.level == 1
    assert stats.points_to_next_level == 1000
    assert stats.rank == 1
    assert stats.streak == 0
    assert stats.monthly_goal == 5000
    assert stats.recent_activities == []
    assert all(item.progress == 0 and not item.completed for item in stats.achievements)
    assert db_session.query(UserPoints).count() == 0


def test_stats_reflect_processed_actions(db_session, service, fixed_clock):
    engine = GamificationEngine(db_session, clock=fixed_clock)
    engine.process_action("u1", "iso_submission", school_id="school-1")
    engine.process_action("u1", "daily_login", school_id="school-1")

    stats = service.get_stats(CallerIdentity(user_id="u1", school_id="school-1"))

    assert stats.total_points == 40 + 500 + 10
    assert stats.streak == 1
    # Bonuses are not part of the activity log.
    assert stats.weekly_progress == 50
    assert {item.type for item in stats.recent_activities} == {"daily_login", "iso_submission"}

    achievements = {item.id: item for item in stats.achievements}
    assert len(achievements) == 6
    assert achievements["iso_compliance"].completed is True
    assert achievements["iso_compliance"].title == "ISO Champion"
    assert achievements["student_add_10"].progress == 0

    challenges = {item.id: item for item in stats.active_challenges}
    assert set(challenges) == {
        "daily_login",
        "weekly_documents",
        "weekly_events",
        "monthly_iso",
        "monthly_engagement",
    }
    assert challenges["monthly_iso"].progress == 1
    assert challenges["monthly_iso"].type == "monthly"
    assert challenges["daily_login"].progress == 1
    assert challenges["weekly_events"].progress == 0
    assert challenges["weekly_events"].deadline.replace(tzinfo=timezone.utc) == datetime(
        2025, 3, 17, tzinfo=timezone.utc
    )


def test_stats_are_cached_until_invalidated(db_session, service):
    identity = CallerIdentity(user_id="u1")
    db_session.add(UserPoints(user_id="u1", total_points=100))
    db_session.commit()

    assert service.get_stats(identity).total_points == 100

    db_session.query(UserPoints).filter_by(user_id="u1").update({"total_points": 1500})
    db_session.commit()
    assert service.get_stats(identity).total_points == 100

    invalidate_stats_cache("u1")
    refreshed = service.get_stats(identity)
    assert refreshed.total_points == 1500
    assert refreshed.level == 2
