"""Pytest fixtures for engine and API tests."""

import os
from collections.abc import Callable, Generator
from datetime import datetime, timezone

os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from school_erp.api.deps import get_db
from school_erp.core.security import create_access_token
from school_erp.db.base import Base
from school_erp.db.models import (
    GamificationActivity,
    UserAchievementProgress,
    UserChallengeProgress,
    UserPoints,
)
from school_erp.main import create_app
from school_erp.utils.cache import cache_backend

GAMIFICATION_TABLES = [
    UserPoints.__table__,
    GamificationActivity.__table__,
    UserAchievementProgress.__table__,
    UserChallengeProgress.__table__,
]

# Wednesday, mid-month
FIXED_NOW = datetime(2025, 3, 12, 10, 30, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=GAMIFICATION_TABLES)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine, tables=list(reversed(GAMIFICATION_TABLES)))


@pytest.fixture()
def db_session(db_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        for table in GAMIFICATION_TABLES:
            db.execute(table.delete())
        db.commit()
        db.close()


@pytest.fixture(autouse=True)
def clear_cache() -> Generator[None, None, None]:
    cache_backend.clear()
    try:
        yield
    finally:
        cache_backend.clear()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def fixed_clock(fixed_now: datetime) -> Callable[[], datetime]:
    return lambda: fixed_now


@pytest.fixture()
def auth_headers() -> Callable[..., dict[str, str]]:
    def _headers(user_id: str = "staff-1", *, school_id: str | None = "school-1") -> dict[str, str]:
        token = create_access_token(user_id, role="staff", school_id=school_id)
        return {"Authorization": f"Bearer {token}"}

    return _headers
