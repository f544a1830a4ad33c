"""Database models package."""
from school_erp.db.models.gamification import (
    GamificationActivity,
    UserAchievementProgress,
    UserChallengeProgress,
    UserPoints,
)

__all__ = [
    "GamificationActivity",
    "UserAchievementProgress",
    "UserChallengeProgress",
    "UserPoints",
]
