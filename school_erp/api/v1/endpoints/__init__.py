"""API endpoint modules for v1."""

from school_erp.api.v1.endpoints import dashboard, gamification

__all__ = ["dashboard", "gamification"]
