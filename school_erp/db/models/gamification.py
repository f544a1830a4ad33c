"""Gamification ledger and progress tracking models."""
import uuid

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from school_erp.db.base import Base
from school_erp.db.types import JSONDict


class UserPoints(Base):
    """Running point total per user."""

    __tablename__ = "user_gamification"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), unique=True, nullable=False, index=True)
    school_id = Column(String(64), index=True)

    total_points = Column(Integer, nullable=False, default=0)
    last_activity = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class GamificationActivity(Base):
    """Append-only log of credited actions."""

    __tablename__ = "gamification_activities"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(64), nullable=False, index=True)
    action_type = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=False)
    points = Column(Integer, nullable=False, default=0)
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSONDict, nullable=False, default=dict)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)


class UserAchievementProgress(Base):
    """Lifetime counter toward a one-time achievement."""

    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievements_user_achievement"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(64), nullable=False, index=True)
    achievement_id = Column(String(100), nullable=False)

    progress = Column(Integer, nullable=False, default=0)
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class UserChallengeProgress(Base):
    """Counter toward a challenge within one deadline window."""

    __tablename__ = "user_challenges"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "challenge_id", "deadline", name="uq_user_challenges_user_challenge_deadline"
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(64), nullable=False, index=True)
    challenge_id = Column(String(100), nullable=False)

    progress = Column(Integer, nullable=False, default=0)
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True))
    deadline = Column(DateTime(timezone=True), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<UserChallengeProgress {self.challenge_id} {self.progress} until {self.deadline}>"
