"""Dashboard quick actions and activity feed."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from school_erp.api import deps
from school_erp.core.gamification import GamificationEngine
from school_erp.schemas import (
    CallerIdentity,
    CompleteActionRequest,
    CompleteActionResponse,
    MilestoneCompletionRead,
    RecentActivitiesResponse,
)
from school_erp.services.gamification_stats import GamificationStatsService, invalidate_stats_cache
from school_erp.utils.exceptions import (
    StorageError,
    ValidationError,
    handle_storage_error,
    handle_validation_error,
)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.post("/actions/complete", response_model=CompleteActionResponse)
def complete_action(
    *,
    payload: CompleteActionRequest,
    engine: GamificationEngine = Depends(deps.get_gamification_engine),
    identity: CallerIdentity = Depends(deps.get_current_identity),
) -> CompleteActionResponse:
    """Credit a completed action and report the points earned."""

    try:
        result = engine.process_action(
            identity.user_id,
            payload.action_type,
            payload.metadata,
            school_id=identity.school_id,
        )
    except ValidationError as exc:
        raise handle_validation_error(exc) from exc
    except StorageError as exc:
        raise handle_storage_error(exc) from exc

    invalidate_stats_cache(identity.user_id)
    return CompleteActionResponse(
        points=result.points,
        message=result.message,
        bonus_points=result.bonus_points,
        completed=[
            MilestoneCompletionRead(
                kind=item.kind,
                milestone_id=item.milestone_id,
                title=item.title,
                progress=item.progress,
                target=item.target,
                bonus_points=item.bonus_points,
            )
            for item in result.completions
        ],
    )


@router.get("/recent-activities", response_model=RecentActivitiesResponse)
def recent_activities(
    *,
    service: GamificationStatsService = Depends(deps.get_stats_service),
    identity: CallerIdentity = Depends(deps.get_current_identity),
) -> RecentActivitiesResponse:
    """Return the caller's latest credited actions, newest first."""

    return RecentActivitiesResponse(data=service.get_recent_activities(identity.user_id))
