"""Celery tasks package."""

from school_erp.tasks import gamification

__all__ = ["gamification"]
