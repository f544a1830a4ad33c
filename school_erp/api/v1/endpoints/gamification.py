"""Gamification stats and task completion endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from school_erp.api import deps
from school_erp.core.gamification import GamificationEngine
from school_erp.schemas import (
    CallerIdentity,
    CompleteTaskRequest,
    CompleteTaskResponse,
    GamificationStatsResponse,
    TaskCompletionData,
)
from school_erp.services.gamification_stats import GamificationStatsService, invalidate_stats_cache
from school_erp.utils.exceptions import (
    StorageError,
    ValidationError,
    handle_storage_error,
    handle_validation_error,
)

router = APIRouter(prefix="/gamification", tags=["gamification"])


@router.get("/stats", response_model=GamificationStatsResponse)
def get_stats(
    *,
    service: GamificationStatsService = Depends(deps.get_stats_service),
    identity: CallerIdentity = Depends(deps.get_current_identity),
) -> GamificationStatsResponse:
    """Return points, level, rank and milestone progress for the caller."""

    return GamificationStatsResponse(stats=service.get_stats(identity))


@router.post("/tasks/complete", response_model=CompleteTaskResponse)
def complete_task(
    *,
    payload: CompleteTaskRequest,
    engine: GamificationEngine = Depends(deps.get_gamification_engine),
    service: GamificationStatsService = Depends(deps.get_stats_service),
    identity: CallerIdentity = Depends(deps.get_current_identity),
) -> CompleteTaskResponse:
    """Credit a task and return the caller's updated level."""

    try:
        result = engine.process_action(
            identity.user_id,
            payload.task_type,
            payload.metadata,
            school_id=identity.school_id,
        )
    except ValidationError as exc:
        raise handle_validation_error(exc) from exc
    except StorageError as exc:
        raise handle_storage_error(exc) from exc

    invalidate_stats_cache(identity.user_id)
    level = service.level_snapshot(result.total_points)
    return CompleteTaskResponse(
        data=TaskCompletionData(
            points_earned=result.points,
            total_points=result.total_points,
            level=level["level"],
            level_progress=level["level_progress"],
            points_to_next_level=level["points_to_next_level"],
        )
    )
