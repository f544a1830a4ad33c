"""Fire-and-forget gamification credits attached to other operations."""
from __future__ import annotations

from typing import Any, Mapping

from loguru import logger
from sqlalchemy.orm import Session

from school_erp.core.gamification import ActionResult, GamificationCatalog, GamificationEngine
from school_erp.services.gamification_stats import invalidate_stats_cache
from school_erp.utils.exceptions import SchoolErpException


def track_action(
    db: Session,
    user_id: str,
    action_type: str,
    metadata: Mapping[str, Any] | None = None,
    *,
    school_id: str | None = None,
    catalog: GamificationCatalog | None = None,
) -> ActionResult | None:
    """Credit an action on behalf of another operation sharing ``db``.

    The credit is written inside a SAVEPOINT and is committed with the
    caller's transaction; the caller's pending work is neither committed nor
    rolled back here. Failures are logged and swallowed so the operation this
    credit is attached to still succeeds. Returns ``None`` when nothing was
    credited.
    """

    engine = GamificationEngine(db, catalog=catalog, nested=True)
    try:
        result = engine.process_action(user_id, action_type, metadata, school_id=school_id)
    except SchoolErpException as exc:
        logger.exception(
            "Error tracking gamification action",
            user_id=user_id,
            action_type=action_type,
            error=exc.message,
        )
        return None

    invalidate_stats_cache(user_id)
    return result


__all__ = ["track_action"]
