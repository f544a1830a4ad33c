"""Create gamification ledger and progress tables"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_gamification_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "user_gamification",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("school_id", sa.String(length=64), nullable=True),
        sa.Column("total_points", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_activity", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=True),
    )
    op.create_index("ix_user_gamification_user_id", "user_gamification", ["user_id"], unique=True)
    op.create_index("ix_user_gamification_school_id", "user_gamification", ["school_id"], unique=False)

    op.create_table(
        "gamification_activities",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("action_type", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("points", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_gamification_activities_user_id", "gamification_activities", ["user_id"], unique=False)
    op.create_index("ix_gamification_activities_action_type", "gamification_activities", ["action_type"], unique=False)
    op.create_index("ix_gamification_activities_timestamp", "gamification_activities", ["timestamp"], unique=False)

    op.create_table(
        "user_achievements",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("achievement_id", sa.String(length=100), nullable=False),
        sa.Column("progress", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("completed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=True),
        sa.UniqueConstraint("user_id", "achievement_id", name="uq_user_achievements_user_achievement"),
    )
    op.create_index("ix_user_achievements_user_id", "user_achievements", ["user_id"], unique=False)

    op.create_table(
        "user_challenges",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("challenge_id", sa.String(length=100), nullable=False),
        sa.Column("progress", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("completed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=True),
        sa.UniqueConstraint(
            "user_id", "challenge_id", "deadline", name="uq_user_challenges_user_challenge_deadline"
        ),
    )
    op.create_index("ix_user_challenges_user_id", "user_challenges", ["user_id"], unique=False)
    op.create_index("ix_user_challenges_deadline", "user_challenges", ["deadline"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_user_challenges_deadline", table_name="user_challenges")
    op.drop_index("ix_user_challenges_user_id", table_name="user_challenges")
    op.drop_table("user_challenges")

    op.drop_index("ix_user_achievements_user_id", table_name="user_achievements")
    op.drop_table("user_achievements")

    op.drop_index("ix_gamification_activities_timestamp", table_name="gamification_activities")
    op.drop_index("ix_gamification_activities_action_type", table_name="gamification_activities")
    op.drop_index("ix_gamification_activities_user_id", table_name="gamification_activities")
    op.drop_table("gamification_activities")

    op.drop_index("ix_user_gamification_school_id", table_name="user_gamification")
    op.drop_index("ix_user_gamification_user_id", table_name="user_gamification")
    op.drop_table("user_gamification")
