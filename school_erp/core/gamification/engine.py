"""Entry point tying the ledger and progress evaluator into one unit of work."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Mapping

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from school_erp.core.gamification.catalog import DEFAULT_CATALOG, GamificationCatalog
from school_erp.core.gamification.evaluator import MilestoneCompletion, ProgressEvaluator
from school_erp.core.gamification.ledger import PointsLedger
from school_erp.core.gamification.repository import GamificationRepository
from school_erp.core.gamification.scheduling import ChallengeWindowScheduler, utcnow
from school_erp.utils.exceptions import StorageError, ValidationError


@dataclass(frozen=True)
class ActionResult:
    """What the caller reports back after an action was processed."""

    points: int
    total_points: int
    message: str
    completions: List[MilestoneCompletion] = field(default_factory=list)

    @property
    def bonus_points(self) -> int:
        return sum(item.bonus_points for item in self.completions)


class GamificationEngine:
    """Credit an action, then advance achievements and challenges.

    All writes for one action share one transaction: the ledger credit, the
    achievement pass and the challenge pass are committed together, or rolled
    back together when storage fails. With ``nested=True`` the writes go to a
    SAVEPOINT instead, leaving the surrounding transaction to its owner.
    """

    def __init__(
        self,
        db: Session,
        *,
        catalog: GamificationCatalog | None = None,
        repository: GamificationRepository | None = None,
        scheduler: ChallengeWindowScheduler | None = None,
        clock: Callable[[], datetime] = utcnow,
        nested: bool = False,
    ) -> None:
        self.db = db
        self.nested = nested
        self.catalog = catalog or DEFAULT_CATALOG
        self.repository = repository or GamificationRepository(db)
        self.clock = clock
        self.ledger = PointsLedger(self.repository, self.catalog.actions)
        self.evaluator = ProgressEvaluator(
            self.repository,
            self.ledger,
            achievements=self.catalog.achievements,
            challenges=self.catalog.challenges,
            scheduler=scheduler or ChallengeWindowScheduler(),
        )

    @staticmethod
    def _validate(user_id: Any, action_type: Any, metadata: Any) -> None:
        if not isinstance(user_id, str) or not user_id.strip():
            raise ValidationError("User id is required")
        if not isinstance(action_type, str) or not action_type.strip():
            raise ValidationError("Action type is required")
        if metadata is not None and not isinstance(metadata, Mapping):
            raise ValidationError(
                "Metadata must be an object", details={"type": type(metadata).__name__}
            )

    def _rollback(self, savepoint) -> None:
        if not self.nested:
            self.db.rollback()
        elif savepoint is not None and savepoint.is_active:
            savepoint.rollback()

    def process_action(
        self,
        user_id: str,
        action_type: str,
        metadata: Mapping[str, Any] | None = None,
        *,
        school_id: str | None = None,
    ) -> ActionResult:
        self._validate(user_id, action_type, metadata)
        now = self.clock()

        savepoint = None
        try:
            if self.nested:
                savepoint = self.db.begin_nested()
            credit = self.ledger.credit(
                user_id, action_type, metadata or {}, now=now, school_id=school_id
            )
            completions = self.evaluator.evaluate(user_id, action_type, now=now)
            if savepoint is not None:
                savepoint.commit()
            else:
                self.db.commit()
        except StorageError as exc:
            self._rollback(savepoint)
            logger.error(
                "Gamification action failed",
                user_id=user_id,
                action_type=action_type,
                error=exc.message,
            )
            raise
        except SQLAlchemyError as exc:
            self._rollback(savepoint)
            logger.error(
                "Gamification commit failed",
                user_id=user_id,
                action_type=action_type,
                error=str(exc),
            )
            raise StorageError(
                "Gamification commit failed",
                details={"operation": "commit", "user_id": user_id},
            ) from exc

        total = credit.total_points + sum(item.bonus_points for item in completions)
        return ActionResult(
            points=credit.points,
            total_points=total,
            message=f"Action completed! +{credit.points} points earned.",
            completions=completions,
        )


__all__ = ["ActionResult", "GamificationEngine"]
