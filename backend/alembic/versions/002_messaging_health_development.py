"""Messaging, injuries and development plans

Revision ID: 002
Revises: 001
Create Date: 2024-10-01 00:00:00.000000+00:00

What:  Adds conversations, participants and messages; injury records with
       treatments; per-player development plans.

Rollback: downgrade() drops the new tables (their data is lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _user_fk(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


def _player_fk() -> sa.Column:
    return sa.Column(
        "player_id", sa.Integer(), sa.ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )


def upgrade() -> None:
    # ── Messaging ─────────────────────────────────────────────────────────
    op.create_table(
        "conversations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("type", sa.String(20), nullable=False, server_default=sa.text("'direct'")),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True),
        _user_fk("created_by"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "conversation_participants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "conversation_id",
            sa.Integer(),
            sa.ForeignKey("conversations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("last_read_message_id", sa.Integer(), nullable=True),
        sa.Column("joined_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("conversation_id", "user_id", name="uq_conversation_participant"),
    )
    op.create_index(
        "ix_conversation_participants_user_id", "conversation_participants", ["user_id"]
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "conversation_id",
            sa.Integer(),
            sa.ForeignKey("conversations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("sender_id"),
        sa.Column("subject", sa.String(200), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default=sa.text("'text'")),
        sa.Column("priority", sa.String(10), nullable=False, server_default=sa.text("'normal'")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("idx_messages_conversation", "messages", ["conversation_id", "id"])

    # ── Injuries ──────────────────────────────────────────────────────────
    op.create_table(
        "injuries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _player_fk(),
        sa.Column("injury_type", sa.String(30), nullable=False),
        sa.Column("injury_severity", sa.String(10), nullable=False),
        sa.Column("injury_date", sa.Date(), nullable=False),
        sa.Column("injury_location", sa.String(20), nullable=False),
        sa.Column("body_part", sa.String(50), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("treatment_plan", sa.Text(), nullable=True),
        sa.Column("expected_recovery_date", sa.Date(), nullable=True),
        sa.Column("actual_recovery_date", sa.Date(), nullable=True),
        sa.Column("return_to_play_date", sa.Date(), nullable=True),
        sa.Column("recovery_notes", sa.Text(), nullable=True),
        sa.Column("medical_notes", sa.Text(), nullable=True),
        sa.Column("doctor_name", sa.String(120), nullable=True),
        sa.Column("follow_up_required", sa.Boolean(), nullable=False, server_default=sa.true()),
        _user_fk("created_by"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("idx_injuries_player_date", "injuries", ["player_id", "injury_date"])

    op.create_table(
        "injury_treatments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("injury_id", sa.Integer(), sa.ForeignKey("injuries.id", ondelete="CASCADE"), nullable=False),
        sa.Column("treatment_type", sa.String(50), nullable=False),
        sa.Column("treatment_date", sa.Date(), nullable=False),
        sa.Column("provider", sa.String(120), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _user_fk("recorded_by"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_injury_treatments_injury_id", "injury_treatments", ["injury_id"])

    # ── Development plans ─────────────────────────────────────────────────
    op.create_table(
        "development_plans",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _player_fk(),
        sa.Column("season", sa.String(20), nullable=False),
        sa.Column("plan_type", sa.String(20), nullable=False),
        sa.Column("current_level", sa.Integer(), nullable=False),
        sa.Column("target_level", sa.Integer(), nullable=False),
        sa.Column("goals", sa.Text(), nullable=False),
        sa.Column("action_steps", sa.Text(), nullable=False),
        sa.Column("resources_needed", sa.Text(), nullable=True),
        sa.Column("deadline", sa.Date(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'active'")),
        sa.Column("completion_percentage", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("progress_notes", sa.Text(), nullable=True),
        sa.Column("coach_notes", sa.Text(), nullable=True),
        sa.Column("parent_feedback", sa.Text(), nullable=True),
        _user_fk("reviewed_by"),
        sa.Column("review_date", sa.Date(), nullable=True),
        _user_fk("created_by"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("current_level BETWEEN 1 AND 10", name="ck_plans_current_level"),
        sa.CheckConstraint("target_level BETWEEN 1 AND 10", name="ck_plans_target_level"),
        sa.CheckConstraint("completion_percentage BETWEEN 0 AND 100", name="ck_plans_completion"),
    )
    op.create_index("ix_development_plans_player_id", "development_plans", ["player_id"])


def downgrade() -> None:
    for table in (
        "development_plans",
        "injury_treatments",
        "injuries",
        "messages",
        "conversation_participants",
        "conversations",
    ):
        op.drop_table(table)
