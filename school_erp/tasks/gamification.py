"""Celery tasks crediting gamification actions outside the request cycle."""
from __future__ import annotations

from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from school_erp.celery_app import celery_app
from school_erp.db.session import SessionLocal
from school_erp.services.gamification_stats import invalidate_stats_cache
from school_erp.services.gamification_tracker import track_action as track_action_now


@celery_app.task(name="school_erp.tasks.gamification.track_action")
def track_action(
    user_id: str,
    action_type: str,
    metadata: dict[str, Any] | None = None,
    school_id: str | None = None,
) -> dict[str, Any]:
    """Credit an action reported by another part of the platform.

    The cached stats summary is invalidated after the commit. That only
    reaches API processes through Redis: when Redis is unreachable each
    process falls back to its own in-process cache, and an API worker may
    keep serving the previous summary for up to
    ``GAMIFICATION_STATS_CACHE_SECONDS``.
    """

    untracked = {"user_id": user_id, "action_type": action_type, "tracked": False}
    db = SessionLocal()
    try:
        result = track_action_now(db, user_id, action_type, metadata, school_id=school_id)
        if result is None:
            return untracked

        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception(
                "Error committing background gamification action",
                user_id=user_id,
                action_type=action_type,
                error=str(exc),
            )
            return untracked

        invalidate_stats_cache(user_id)
        logger.info(
            "Background gamification action tracked",
            user_id=user_id,
            action_type=action_type,
            points=result.points,
        )
        return {
            "user_id": user_id,
            "action_type": action_type,
            "tracked": True,
            "points": result.points,
            "total_points": result.total_points,
            "completed": [item.milestone_id for item in result.completions],
        }
    finally:
        db.close()


__all__ = ["track_action"]
