"""Challenge window boundaries."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from school_erp.core.gamification.catalog import ChallengePeriod


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _next_daily_reset(now: datetime) -> datetime:
    """Next midnight UTC."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight + timedelta(days=1)


def _next_weekly_reset(now: datetime) -> datetime:
    """Next Monday midnight UTC."""
    days_until_monday = 7 - now.weekday()
    return (now + timedelta(days=days_until_monday)).replace(
        hour=0, minute=0, second=0, microsecond=0
    )


def _next_monthly_reset(now: datetime) -> datetime:
    """First day of next month, midnight UTC."""
    if now.month == 12:
        return now.replace(year=now.year + 1, month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    return now.replace(month=now.month + 1, day=1, hour=0, minute=0, second=0, microsecond=0)


class ChallengeWindowScheduler:
    """Decide when a freshly opened challenge window expires.

    Windows are aligned to calendar boundaries so that two requests opening
    the same window concurrently compute the same deadline.
    """

    _resets = {
        "daily": _next_daily_reset,
        "weekly": _next_weekly_reset,
        "monthly": _next_monthly_reset,
    }

    def deadline_for(self, period: ChallengePeriod, now: datetime) -> datetime:
        try:
            reset = self._resets[period]
        except KeyError as exc:
            raise ValueError(f"Unknown challenge period: {period}") from exc
        return reset(_as_utc(now))


__all__ = ["ChallengeWindowScheduler", "utcnow"]
