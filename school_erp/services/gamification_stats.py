"""Read-side summaries of a user's gamification state."""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from school_erp.config import settings
from school_erp.core.gamification import (
    DEFAULT_CATALOG,
    ChallengeWindowScheduler,
    GamificationCatalog,
    utcnow,
)
from school_erp.db.models.gamification import (
    GamificationActivity,
    UserAchievementProgress,
    UserChallengeProgress,
    UserPoints,
)
from school_erp.schemas.auth import CallerIdentity
from school_erp.schemas.gamification import (
    AchievementStatus,
    ActivityRead,
    ChallengeStatus,
    GamificationStats,
)
from school_erp.utils.cache import build_cache_key, cache_backend

STATS_CACHE_NAMESPACE = "gamification:stats"
STREAK_LOOKBACK_DAYS = 30


def _utc_date(moment: datetime) -> date:
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(timezone.utc).date()


def invalidate_stats_cache(user_id: str) -> None:
    """Drop the cached dashboard summary for a user."""

    cache_backend.invalidate(STATS_CACHE_NAMESPACE, key=build_cache_key(user_id=user_id))


class GamificationStatsService:
    """Compute level, rank, streak and milestone progress for the dashboard.

    Reads never create records: a user without a ledger row simply reports
    zero points and rank 1.
    """

    def __init__(
        self,
        db: Session,
        *,
        catalog: GamificationCatalog | None = None,
        scheduler: ChallengeWindowScheduler | None = None,
        clock: Callable[[], datetime] = utcnow,
        level_points: int | None = None,
    ) -> None:
        self.db = db
        self.catalog = catalog or DEFAULT_CATALOG
        self.scheduler = scheduler or ChallengeWindowScheduler()
        self.clock = clock
        self.level_points = level_points or settings.GAMIFICATION_LEVEL_POINTS

    # ------------------------------------------------------------------
    # Dashboard summary
    # ------------------------------------------------------------------
    def get_stats(self, identity: CallerIdentity) -> GamificationStats:
        cache_key = build_cache_key(user_id=identity.user_id)
        cached = cache_backend.get(STATS_CACHE_NAMESPACE, cache_key)
        if cached is not None:
            return GamificationStats.model_validate(cached)

        now = self.clock()
        total_points = self.get_total_points(identity.user_id)
        level = self.level_snapshot(total_points)

        stats = GamificationStats(
            total_points=total_points,
            level=level["level"],
            level_progress=level["level_progress"],
            points_to_next_level=level["points_to_next_level"],
            rank=self.get_rank(identity.user_id, identity.school_id),
            achievements=self.get_achievements(identity.user_id),
            active_challenges=self.get_active_challenges(identity.user_id, now=now),
            streak=self.calculate_streak(identity.user_id, now=now),
            weekly_progress=self.get_weekly_progress(identity.user_id, now=now),
            monthly_goal=settings.GAMIFICATION_MONTHLY_GOAL,
            recent_activities=self.get_recent_activities(identity.user_id),
        )

        cache_backend.set(
            STATS_CACHE_NAMESPACE,
            cache_key,
            stats.model_dump(mode="json", by_alias=True),
            ttl_seconds=settings.GAMIFICATION_STATS_CACHE_SECONDS,
        )
        return stats

    def level_snapshot(self, total_points: int) -> Dict[str, float | int]:
        points_in_level = total_points % self.level_points
        return {
            "level": total_points // self.level_points + 1,
            "level_progress": points_in_level / self.level_points * 100,
            "points_to_next_level": self.level_points - points_in_level,
        }

    # ------------------------------------------------------------------
    # Ledger reads
    # ------------------------------------------------------------------
    def get_total_points(self, user_id: str) -> int:
        total = (
            self.db.query(UserPoints.total_points)
            .filter(UserPoints.user_id == user_id)
            .scalar()
        )
        return int(total or 0)

    def get_rank(self, user_id: str, school_id: str | None = None) -> int:
        """Return 1 + the number of users (in the same school) with more points."""

        total = (
            self.db.query(UserPoints.total_points)
            .filter(UserPoints.user_id == user_id)
            .scalar()
        )
        if total is None:
            return 1

        query = self.db.query(func.count(UserPoints.id)).filter(UserPoints.total_points > total)
        if school_id is not None:
            query = query.filter(UserPoints.school_id == school_id)
        return int(query.scalar() or 0) + 1

    def get_recent_activities(self, user_id: str, limit: int | None = None) -> List[ActivityRead]:
        limit = limit or settings.GAMIFICATION_RECENT_ACTIVITY_LIMIT
        activities = (
            self.db.query(GamificationActivity)
            .filter(GamificationActivity.user_id == user_id)
            .order_by(GamificationActivity.timestamp.desc())
            .limit(limit)
            .all()
        )
        return [
            ActivityRead(
                id=str(activity.id),
                type=activity.action_type,
                description=activity.description,
                points=activity.points,
                timestamp=activity.timestamp,
            )
            for activity in activities
        ]

    def calculate_streak(self, user_id: str, *, now: datetime) -> int:
        """Count consecutive days, ending today, with a daily login."""

        since = now - timedelta(days=STREAK_LOOKBACK_DAYS)
        timestamps = (
            self.db.query(GamificationActivity.timestamp)
            .filter(
                GamificationActivity.user_id == user_id,
                GamificationActivity.action_type == "daily_login",
                GamificationActivity.timestamp >= since,
            )
            .all()
        )
        login_days = {_utc_date(row.timestamp) for row in timestamps}

        streak = 0
        day = _utc_date(now)
        while day in login_days:
            streak += 1
            day -= timedelta(days=1)
        return streak

    def get_weekly_progress(self, user_id: str, *, now: datetime) -> int:
        """Points logged since the start of the week (Sunday 00:00 UTC)."""

        week_start = (now - timedelta(days=(now.weekday() + 1) % 7)).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        total = (
            self.db.query(func.coalesce(func.sum(GamificationActivity.points), 0))
            .filter(
                GamificationActivity.user_id == user_id,
                GamificationActivity.timestamp >= week_start,
            )
            .scalar()
        )
        return int(total or 0)

    # ------------------------------------------------------------------
    # Milestones
    # ------------------------------------------------------------------
    def get_achievements(self, user_id: str) -> List[AchievementStatus]:
        records = {
            record.achievement_id: record
            for record in self.db.query(UserAchievementProgress)
            .filter(UserAchievementProgress.user_id == user_id)
            .all()
        }

        items: List[AchievementStatus] = []
        for rule in self.catalog.achievements.rules.values():
            record = records.get(rule.milestone_id)
            items.append(
                AchievementStatus(
                    id=rule.milestone_id,
                    title=rule.title,
                    points=rule.bonus_points,
                    target=rule.target,
                    progress=record.progress if record else 0,
                    completed=bool(record.completed) if record else False,
                    completed_at=record.completed_at if record else None,
                )
            )
        return items

    def get_active_challenges(self, user_id: str, *, now: datetime) -> List[ChallengeStatus]:
        active: Dict[str, UserChallengeProgress] = {}
        for record in (
            self.db.query(UserChallengeProgress)
            .filter(
                UserChallengeProgress.user_id == user_id,
                UserChallengeProgress.deadline > now,
            )
            .order_by(UserChallengeProgress.deadline)
            .all()
        ):
            active.setdefault(record.challenge_id, record)

        items: List[ChallengeStatus] = []
        for rule in self.catalog.challenges.rules.values():
            record = active.get(rule.milestone_id)
            items.append(
                ChallengeStatus(
                    id=rule.milestone_id,
                    title=rule.title,
                    type=rule.period,
                    points=rule.bonus_points,
                    target=rule.target,
                    progress=record.progress if record else 0,
                    completed=bool(record.completed) if record else False,
                    deadline=(
                        record.deadline
                        if record
                        else self.scheduler.deadline_for(rule.period, now)
                    ),
                )
            )
        return items


__all__ = ["GamificationStatsService", "invalidate_stats_cache"]
