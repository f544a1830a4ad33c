"""Pydantic schemas for gamification endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Schema serialized with camelCase keys for the dashboard clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CompleteActionRequest(CamelModel):
    """Body of the complete-action endpoint."""

    action_type: str | None = None
    metadata: dict[str, Any] | None = None


class CompleteTaskRequest(CamelModel):
    """Body of the complete-task endpoint."""

    task_type: str | None = None
    metadata: dict[str, Any] | None = None


class MilestoneCompletionRead(CamelModel):
    """Achievement or challenge completed by an action."""

    kind: Literal["achievement", "challenge"]
    milestone_id: str
    title: str
    progress: int
    target: int
    bonus_points: int


class CompleteActionResponse(CamelModel):
    """Response after an action was credited."""

    success: bool = True
    points: int
    message: str
    bonus_points: int = 0
    completed: list[MilestoneCompletionRead] = Field(default_factory=list)


class TaskCompletionData(CamelModel):
    """Level snapshot after a task was credited."""

    points_earned: int
    total_points: int
    level: int
    level_progress: float
    points_to_next_level: int


class CompleteTaskResponse(CamelModel):
    success: bool = True
    data: TaskCompletionData


class ActivityRead(CamelModel):
    """Activity log entry."""

    id: str
    type: str
    description: str
    points: int
    timestamp: datetime


class RecentActivitiesResponse(CamelModel):
    success: bool = True
    data: list[ActivityRead] = Field(default_factory=list)


class AchievementStatus(CamelModel):
    """Cataloged achievement with the caller's progress."""

    id: str
    title: str
    points: int
    target: int
    progress: int = 0
    completed: bool = False
    completed_at: datetime | None = None


class ChallengeStatus(CamelModel):
    """Cataloged challenge with the caller's progress in the current window."""

    id: str
    title: str
    type: Literal["daily", "weekly", "monthly"]
    points: int
    target: int
    progress: int = 0
    completed: bool = False
    deadline: datetime


class GamificationStats(CamelModel):
    """Dashboard summary of a user's points, level and milestones."""

    total_points: int
    level: int
    level_progress: float
    points_to_next_level: int
    rank: int
    achievements: list[AchievementStatus] = Field(default_factory=list)
    active_challenges: list[ChallengeStatus] = Field(default_factory=list)
    streak: int = 0
    weekly_progress: int = 0
    monthly_goal: int
    recent_activities: list[ActivityRead] = Field(default_factory=list)


class GamificationStatsResponse(CamelModel):
    success: bool = True
    stats: GamificationStats


__all__ = [
    "AchievementStatus",
    "ActivityRead",
    "CamelModel",
    "ChallengeStatus",
    "CompleteActionRequest",
    "CompleteActionResponse",
    "CompleteTaskRequest",
    "CompleteTaskResponse",
    "GamificationStats",
    "GamificationStatsResponse",
    "MilestoneCompletionRead",
    "RecentActivitiesResponse",
    "TaskCompletionData",
]
