"""Storage primitives for the gamification ledger and progress counters.

Every counter mutation is a single ``INSERT ... ON CONFLICT DO UPDATE ...
RETURNING`` or ``UPDATE ... RETURNING`` statement, so concurrent credits for
the same user never lose an increment. Completion flags are flipped with a
conditional ``UPDATE ... WHERE completed = false`` whose row count tells the
caller whether it won the transition.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping

from sqlalchemy import insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from school_erp.db.models.gamification import (
    GamificationActivity,
    UserAchievementProgress,
    UserChallengeProgress,
    UserPoints,
)
from school_erp.utils.exceptions import StorageError

_INSERT_CONSTRUCTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(frozen=True)
class CounterState:
    """Counter value and completion flag right after an increment."""

    progress: int
    completed: bool
    record_id: uuid.UUID | None = None


class GamificationRepository:
    """Atomic increments and conditional sets over the gamification tables."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _insert(self, table):
        dialect = self.db.get_bind().dialect.name
        try:
            return _INSERT_CONSTRUCTS[dialect](table)
        except KeyError as exc:
            raise StorageError(
                "Unsupported database dialect for gamification storage",
                details={"dialect": dialect},
            ) from exc

    def _execute(self, statement, operation: str, **context: Any):
        try:
            return self.db.execute(statement)
        except SQLAlchemyError as exc:
            raise StorageError(
                f"Gamification storage operation failed: {operation}",
                details={"operation": operation, **context},
            ) from exc

    # ------------------------------------------------------------------
    # Points ledger
    # ------------------------------------------------------------------
    def increment_points(
        self,
        user_id: str,
        delta: int,
        *,
        now: datetime,
        school_id: str | None = None,
    ) -> int:
        """Add ``delta`` to the user's total, creating the record if needed.

        Returns the new total.
        """

        table = UserPoints.__table__
        values: dict[str, Any] = {
            "user_id": user_id,
            "total_points": delta,
            "last_activity": now,
            "updated_at": now,
        }
        on_conflict: dict[str, Any] = {
            "total_points": table.c.total_points + delta,
            "last_activity": now,
            "updated_at": now,
        }
        if school_id is not None:
            values["school_id"] = school_id
            on_conflict["school_id"] = school_id

        statement = (
            self._insert(table)
            .values(**values)
            .on_conflict_do_update(index_elements=[table.c.user_id], set_=on_conflict)
            .returning(table.c.total_points)
        )
        result = self._execute(statement, "increment_points", user_id=user_id)
        return int(result.scalar_one())

    def add_bonus_points(self, user_id: str, delta: int, *, now: datetime) -> int:
        """Credit a completion bonus without touching ``last_activity``."""

        table = UserPoints.__table__
        statement = (
            self._insert(table)
            .values(user_id=user_id, total_points=delta, updated_at=now)
            .on_conflict_do_update(
                index_elements=[table.c.user_id],
                set_={"total_points": table.c.total_points + delta, "updated_at": now},
            )
            .returning(table.c.total_points)
        )
        result = self._execute(statement, "add_bonus_points", user_id=user_id)
        return int(result.scalar_one())

    def append_activity(
        self,
        user_id: str,
        action_type: str,
        description: str,
        points: int,
        metadata: Mapping[str, Any],
        *,
        now: datetime,
    ) -> uuid.UUID:
        activity_id = uuid.uuid4()
        statement = insert(GamificationActivity).values(
            {
                GamificationActivity.id: activity_id,
                GamificationActivity.user_id: user_id,
                GamificationActivity.action_type: action_type,
                GamificationActivity.description: description,
                GamificationActivity.points: points,
                GamificationActivity.details: dict(metadata),
                GamificationActivity.timestamp: now,
            }
        )
        self._execute(statement, "append_activity", user_id=user_id, action_type=action_type)
        return activity_id

    # ------------------------------------------------------------------
    # Achievements
    # ------------------------------------------------------------------
    def increment_achievement(self, user_id: str, achievement_id: str) -> CounterState:
        table = UserAchievementProgress.__table__
        statement = (
            self._insert(table)
            .values(user_id=user_id, achievement_id=achievement_id, progress=1, completed=False)
            .on_conflict_do_update(
                index_elements=[table.c.user_id, table.c.achievement_id],
                set_={"progress": table.c.progress + 1},
            )
            .returning(table.c.id, table.c.progress, table.c.completed)
        )
        row = self._execute(
            statement, "increment_achievement", user_id=user_id, achievement_id=achievement_id
        ).one()
        return CounterState(progress=row.progress, completed=bool(row.completed), record_id=row.id)

    def complete_achievement(self, user_id: str, achievement_id: str, *, now: datetime) -> bool:
        """Mark the achievement completed unless it already is."""

        table = UserAchievementProgress.__table__
        statement = (
            update(table)
            .where(
                table.c.user_id == user_id,
                table.c.achievement_id == achievement_id,
                table.c.completed.is_(False),
            )
            .values(completed=True, completed_at=now)
        )
        result = self._execute(
            statement, "complete_achievement", user_id=user_id, achievement_id=achievement_id
        )
        return result.rowcount == 1

    # ------------------------------------------------------------------
    # Challenges
    # ------------------------------------------------------------------
    def increment_challenge(
        self,
        user_id: str,
        challenge_id: str,
        *,
        now: datetime,
        new_window_deadline: Callable[[], datetime],
    ) -> CounterState:
        """Advance the unexpired window for a challenge.

        Expired windows are never touched. When no unexpired window exists a
        new record is opened with the deadline supplied by
        ``new_window_deadline``.
        """

        table = UserChallengeProgress.__table__
        window = table.alias("active_window")
        active_window = (
            select(window.c.id)
            .where(
                window.c.user_id == user_id,
                window.c.challenge_id == challenge_id,
                window.c.deadline > now,
            )
            .order_by(window.c.deadline)
            .limit(1)
            .scalar_subquery()
        )
        statement = (
            update(table)
            .where(table.c.id == active_window)
            .values(progress=table.c.progress + 1)
            .returning(table.c.id, table.c.progress, table.c.completed)
        )
        row = self._execute(
            statement, "increment_challenge", user_id=user_id, challenge_id=challenge_id
        ).first()

        if row is None:
            deadline = new_window_deadline()
            statement = (
                self._insert(table)
                .values(
                    user_id=user_id,
                    challenge_id=challenge_id,
                    progress=1,
                    completed=False,
                    deadline=deadline,
                )
                .on_conflict_do_update(
                    index_elements=[table.c.user_id, table.c.challenge_id, table.c.deadline],
                    set_={"progress": table.c.progress + 1},
                )
                .returning(table.c.id, table.c.progress, table.c.completed)
            )
            row = self._execute(
                statement, "open_challenge_window", user_id=user_id, challenge_id=challenge_id
            ).one()

        return CounterState(progress=row.progress, completed=bool(row.completed), record_id=row.id)

    def complete_challenge(self, record_id: uuid.UUID, *, now: datetime) -> bool:
        """Mark one challenge window completed unless it already is."""

        table = UserChallengeProgress.__table__
        statement = (
            update(table)
            .where(table.c.id == record_id, table.c.completed.is_(False))
            .values(completed=True, completed_at=now)
        )
        result = self._execute(statement, "complete_challenge", record_id=str(record_id))
        return result.rowcount == 1


__all__ = ["CounterState", "GamificationRepository"]
