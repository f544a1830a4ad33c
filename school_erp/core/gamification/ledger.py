"""Points ledger: credit an action to a user's running total."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from loguru import logger

from school_erp.core.gamification.catalog import ActionCatalog
from school_erp.core.gamification.repository import GamificationRepository


@dataclass(frozen=True)
class CreditResult:
    """Outcome of crediting one action."""

    points: int
    total_points: int
    description: str


class PointsLedger:
    """Resolve an action's value, add it to the total and log the event."""

    def __init__(self, repository: GamificationRepository, actions: ActionCatalog) -> None:
        self.repository = repository
        self.actions = actions

    def credit(
        self,
        user_id: str,
        action_type: str,
        metadata: Mapping[str, Any],
        *,
        now: datetime,
        school_id: str | None = None,
    ) -> CreditResult:
        points = self.actions.points_for(action_type)
        description = self.actions.description_for(action_type)

        total = self.repository.increment_points(user_id, points, now=now, school_id=school_id)
        self.repository.append_activity(
            user_id, action_type, description, points, metadata, now=now
        )

        logger.debug(
            "Points credited",
            user_id=user_id,
            action_type=action_type,
            points=points,
            total_points=total,
        )
        return CreditResult(points=points, total_points=total, description=description)

    def award_bonus(self, user_id: str, points: int, *, now: datetime) -> int:
        """Add completion bonus points; bonuses are not written to the activity log."""

        return self.repository.add_bonus_points(user_id, points, now=now)


__all__ = ["CreditResult", "PointsLedger"]
