"""API router for version 1."""
from fastapi import APIRouter

from school_erp.api.v1.endpoints import dashboard, gamification


api_router = APIRouter()
api_router.include_router(dashboard.router)
api_router.include_router(gamification.router)
