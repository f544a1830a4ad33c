"""Pydantic schemas package."""

from school_erp.schemas.auth import CallerIdentity, TokenPayload
from school_erp.schemas.gamification import (
    AchievementStatus,
    ActivityRead,
    ChallengeStatus,
    CompleteActionRequest,
    CompleteActionResponse,
    CompleteTaskRequest,
    CompleteTaskResponse,
    GamificationStats,
    GamificationStatsResponse,
    MilestoneCompletionRead,
    RecentActivitiesResponse,
    TaskCompletionData,
)

__all__ = [
    "AchievementStatus",
    "ActivityRead",
    "CallerIdentity",
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
    "TokenPayload",
]
