"""Service layer package."""

from school_erp.services.gamification_stats import GamificationStatsService, invalidate_stats_cache
from school_erp.services.gamification_tracker import track_action

__all__ = [
    "GamificationStatsService",
    "invalidate_stats_cache",
    "track_action",
]
