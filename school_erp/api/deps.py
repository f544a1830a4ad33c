"""Shared API dependencies."""
from __future__ import annotations

from functools import lru_cache

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError
from sqlalchemy.orm import Session

from school_erp.config import settings
from school_erp.core.gamification import (
    DEFAULT_CATALOG,
    GamificationCatalog,
    GamificationEngine,
    load_catalog,
)
from school_erp.core.security import InvalidTokenError, decode_token
from school_erp.db.session import SessionLocal
from school_erp.schemas import CallerIdentity, TokenPayload
from school_erp.services.gamification_stats import GamificationStatsService
from school_erp.utils.exceptions import AuthenticationError, handle_authentication_error

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")


def get_db() -> Session:
    """Yield a database session for request lifetime."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_identity(token: str = Depends(oauth2_scheme)) -> CallerIdentity:
    """Resolve the caller's user id, role and school from the bearer token."""

    if not token:
        raise handle_authentication_error(AuthenticationError("Not authenticated"))

    try:
        payload = decode_token(token)
        if payload.get("type") != "access":
            raise InvalidTokenError("Token must be an access token")
        token_data = TokenPayload.model_validate(payload)
    except (InvalidTokenError, ValidationError, ValueError, KeyError) as exc:
        raise handle_authentication_error(
            AuthenticationError("Could not validate credentials")
        ) from exc

    return CallerIdentity(
        user_id=token_data.sub,
        role=token_data.role,
        school_id=token_data.school_id,
    )


@lru_cache()
def get_catalog() -> GamificationCatalog:
    """Return the configured economy, loading it from file once."""

    if settings.GAMIFICATION_CATALOG_FILE is not None:
        return load_catalog(settings.GAMIFICATION_CATALOG_FILE)
    return DEFAULT_CATALOG


def get_gamification_engine(
    db: Session = Depends(get_db),
    catalog: GamificationCatalog = Depends(get_catalog),
) -> GamificationEngine:
    return GamificationEngine(db, catalog=catalog)


def get_stats_service(
    db: Session = Depends(get_db),
    catalog: GamificationCatalog = Depends(get_catalog),
) -> GamificationStatsService:
    return GamificationStatsService(db, catalog=catalog)
