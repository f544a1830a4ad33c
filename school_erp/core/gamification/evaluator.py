"""Advance achievement and challenge counters and award completion bonuses."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Literal

from loguru import logger

from school_erp.core.gamification.catalog import MilestoneRule, MilestoneTable
from school_erp.core.gamification.ledger import PointsLedger
from school_erp.core.gamification.repository import CounterState, GamificationRepository
from school_erp.core.gamification.scheduling import ChallengeWindowScheduler

MilestoneKind = Literal["achievement", "challenge"]


@dataclass(frozen=True)
class MilestoneCompletion:
    """A counter that reached its target during this action."""

    kind: MilestoneKind
    milestone_id: str
    title: str
    progress: int
    target: int
    bonus_points: int


class ProgressEvaluator:
    """Apply the NotStarted -> InProgress -> Completed transitions.

    Each counter is bumped with an atomic increment that returns the new
    value; the bonus is credited only by the caller whose conditional
    ``completed = false -> true`` update applied, so it is paid at most once
    per achievement, or per challenge window.
    """

    def __init__(
        self,
        repository: GamificationRepository,
        ledger: PointsLedger,
        achievements: MilestoneTable,
        challenges: MilestoneTable,
        scheduler: ChallengeWindowScheduler,
    ) -> None:
        self.repository = repository
        self.ledger = ledger
        self.achievements = achievements
        self.challenges = challenges
        self.scheduler = scheduler

    def evaluate(self, user_id: str, action_type: str, *, now: datetime) -> List[MilestoneCompletion]:
        completions = self._advance_achievements(user_id, action_type, now=now)
        completions.extend(self._advance_challenges(user_id, action_type, now=now))
        return completions

    def _advance_achievements(
        self, user_id: str, action_type: str, *, now: datetime
    ) -> List[MilestoneCompletion]:
        completed: List[MilestoneCompletion] = []
        for achievement_id in self.achievements.ids_for(action_type):
            rule = self.achievements.rule_for(achievement_id)
            state = self.repository.increment_achievement(user_id, achievement_id)
            if not self._reached(state, rule):
                continue
            if not self.repository.complete_achievement(user_id, achievement_id, now=now):
                continue
            completed.append(self._award(user_id, "achievement", rule, state, now=now))
        return completed

    def _advance_challenges(
        self, user_id: str, action_type: str, *, now: datetime
    ) -> List[MilestoneCompletion]:
        completed: List[MilestoneCompletion] = []
        for challenge_id in self.challenges.ids_for(action_type):
            rule = self.challenges.rule_for(challenge_id)
            state = self.repository.increment_challenge(
                user_id,
                challenge_id,
                now=now,
                new_window_deadline=lambda rule=rule: self.scheduler.deadline_for(rule.period, now),
            )
            if not self._reached(state, rule):
                continue
            if not self.repository.complete_challenge(state.record_id, now=now):
                continue
            completed.append(self._award(user_id, "challenge", rule, state, now=now))
        return completed

    @staticmethod
    def _reached(state: CounterState, rule: MilestoneRule) -> bool:
        return not state.completed and state.progress >= rule.target

    def _award(
        self,
        user_id: str,
        kind: MilestoneKind,
        rule: MilestoneRule,
        state: CounterState,
        *,
        now: datetime,
    ) -> MilestoneCompletion:
        self.ledger.award_bonus(user_id, rule.bonus_points, now=now)
        logger.info(
            "Gamification milestone completed",
            user_id=user_id,
            kind=kind,
            milestone_id=rule.milestone_id,
            bonus_points=rule.bonus_points,
        )
        return MilestoneCompletion(
            kind=kind,
            milestone_id=rule.milestone_id,
            title=rule.title,
            progress=state.progress,
            target=rule.target,
            bonus_points=rule.bonus_points,
        )


__all__ = ["MilestoneCompletion", "ProgressEvaluator"]
