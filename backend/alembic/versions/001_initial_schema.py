"""Initial academy schema

Revision ID: 001
Revises: None
Create Date: 2024-08-01 00:00:00.000000+00:00

What:  Creates every table: accounts, teams, players and parent links,
       trainings with attendance and QR tokens, matches and events,
       billing, announcements.
How:   Portable types only (Integer ids, Numeric(12, 2) money, naive
       DateTime in UTC) so the same revision runs on SQLite and PostgreSQL.

Rollback: downgrade() drops everything (destructive — all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(12, 2)


def _timestamps(updated: bool = True):
    cols = [sa.Column("created_at", sa.DateTime(), nullable=False)]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(), nullable=False))
    return cols


def _user_fk(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


def upgrade() -> None:
    # ── Teams, players, accounts ──────────────────────────────────────────
    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("age_group", sa.String(20), nullable=True),
        sa.Column("division", sa.String(50), nullable=True),
        sa.Column("season", sa.String(20), nullable=True),
        sa.Column("max_players", sa.Integer(), nullable=False, server_default=sa.text("25")),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=False),
        sa.Column("position", sa.String(20), nullable=True),
        sa.Column("dominant_foot", sa.String(10), nullable=True),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True),
        sa.Column("parent_name", sa.String(120), nullable=True),
        sa.Column("parent_phone", sa.String(40), nullable=True),
        sa.Column("parent_email", sa.String(255), nullable=True),
        sa.Column("medical_notes", sa.Text(), nullable=True),
        sa.Column("profile_image", sa.String(255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "position IS NULL OR position IN ('goalkeeper', 'defender', 'midfielder', 'forward')",
            name="ck_players_position",
        ),
        sa.CheckConstraint(
            "dominant_foot IS NULL OR dominant_foot IN ('left', 'right', 'both')",
            name="ck_players_dominant_foot",
        ),
    )
    op.create_index("ix_players_team_id", "players", ["team_id"])

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(120), nullable=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True),
        sa.Column("player_id", sa.Integer(), sa.ForeignKey("players.id", ondelete="SET NULL"), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("role IN ('admin', 'coach', 'parent', 'player')", name="ck_users_role"),
    )
    op.create_index("ix_users_team_id", "users", ["team_id"])

    op.create_table(
        "parent_child_relationships",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("child_id", sa.Integer(), sa.ForeignKey("players.id", ondelete="CASCADE"), nullable=False),
        sa.Column("relationship_type", sa.String(30), nullable=False, server_default=sa.text("'parent'")),
        sa.Column("primary_contact", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(updated=False),
        sa.UniqueConstraint("parent_id", "child_id", name="uq_parent_child"),
    )
    op.create_index("ix_parent_child_relationships_parent_id", "parent_child_relationships", ["parent_id"])
    op.create_index("ix_parent_child_relationships_child_id", "parent_child_relationships", ["child_id"])

    # ── Trainings ─────────────────────────────────────────────────────────
    op.create_table(
        "trainings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time", sa.Time(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False, server_default=sa.text("90")),
        sa.Column("location", sa.String(120), nullable=True),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("training_plan", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _user_fk("created_by"),
        *_timestamps(),
    )
    op.create_index("idx_trainings_team_date", "trainings", ["team_id", "date"])

    op.create_table(
        "attendance",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("training_id", sa.Integer(), sa.ForeignKey("trainings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("player_id", sa.Integer(), sa.ForeignKey("players.id", ondelete="CASCADE"), nullable=False),
        sa.Column("present", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("late_minutes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("absence_reason", sa.String(255), nullable=True),
        sa.Column("performance_rating", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("checked_in_at", sa.DateTime(), nullable=True),
        _user_fk("recorded_by"),
        *_timestamps(),
        sa.UniqueConstraint("training_id", "player_id", name="uq_attendance_training_player"),
    )
    op.create_index("ix_attendance_training_id", "attendance", ["training_id"])
    op.create_index("ix_attendance_player_id", "attendance", ["player_id"])

    op.create_table(
        "training_qr_tokens",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("training_id", sa.Integer(), sa.ForeignKey("trainings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token", sa.String(64), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _user_fk("created_by"),
        *_timestamps(updated=False),
    )
    op.create_index("ix_training_qr_tokens_training_id", "training_qr_tokens", ["training_id"])

    # ── Matches ───────────────────────────────────────────────────────────
    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("home_team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("away_team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=True),
        sa.Column("opponent_name", sa.String(120), nullable=True),
        sa.Column("match_date", sa.Date(), nullable=False),
        sa.Column("match_time", sa.Time(), nullable=True),
        sa.Column("venue", sa.String(120), nullable=True),
        sa.Column("match_type", sa.String(20), nullable=False, server_default=sa.text("'friendly'")),
        sa.Column("season", sa.String(20), nullable=True),
        sa.Column("match_duration", sa.Integer(), nullable=False, server_default=sa.text("90")),
        sa.Column("weather", sa.String(60), nullable=True),
        sa.Column("referee", sa.String(120), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("match_status", sa.String(20), nullable=False, server_default=sa.text("'scheduled'")),
        sa.Column("home_score", sa.Integer(), nullable=True),
        sa.Column("away_score", sa.Integer(), nullable=True),
        _user_fk("created_by"),
        *_timestamps(),
        sa.CheckConstraint(
            "away_team_id IS NULL OR away_team_id != home_team_id",
            name="ck_matches_distinct_teams",
        ),
        sa.CheckConstraint(
            "(home_score IS NULL OR home_score >= 0) AND (away_score IS NULL OR away_score >= 0)",
            name="ck_matches_scores_non_negative",
        ),
    )
    op.create_index("ix_matches_home_team_id", "matches", ["home_team_id"])
    op.create_index("ix_matches_away_team_id", "matches", ["away_team_id"])
    op.create_index("idx_matches_date", "matches", ["match_date"])

    op.create_table(
        "match_events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("match_id", sa.Integer(), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("player_id", sa.Integer(), sa.ForeignKey("players.id", ondelete="CASCADE"), nullable=False),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_type", sa.String(30), nullable=False),
        sa.Column("minute", sa.Integer(), nullable=True),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("assisted_by", sa.Integer(), sa.ForeignKey("players.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_match_events_match_id", "match_events", ["match_id"])
    op.create_index("ix_match_events_player_id", "match_events", ["player_id"])

    # ── Billing ───────────────────────────────────────────────────────────
    op.create_table(
        "subscription_plans",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("plan_name", sa.String(100), nullable=False),
        sa.Column("plan_type", sa.String(20), nullable=False, server_default=sa.text("'monthly'")),
        sa.Column("age_group", sa.String(20), nullable=True),
        sa.Column("training_level", sa.String(30), nullable=True),
        sa.Column("price_amount", MONEY, nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'HUF'")),
        sa.Column("sessions_per_week", sa.Integer(), nullable=False, server_default=sa.text("2")),
        sa.Column("includes_equipment", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("includes_matches", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("includes_insurance", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("price_amount >= 0", name="ck_plans_price_non_negative"),
    )

    op.create_table(
        "student_subscriptions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("player_id", sa.Integer(), sa.ForeignKey("players.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "plan_id", sa.Integer(), sa.ForeignKey("subscription_plans.id", ondelete="RESTRICT"), nullable=False
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("monthly_price", MONEY, nullable=False),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_method", sa.String(20), nullable=False, server_default=sa.text("'bank_transfer'")),
        sa.Column("billing_contact_name", sa.String(120), nullable=True),
        sa.Column("billing_contact_email", sa.String(255), nullable=True),
        sa.Column("billing_contact_phone", sa.String(40), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'active'")),
        sa.Column("notes", sa.Text(), nullable=True),
        _user_fk("created_by"),
        *_timestamps(),
    )
    op.create_index("ix_student_subscriptions_player_id", "student_subscriptions", ["player_id"])

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("invoice_number", sa.String(20), nullable=False, unique=True),
        sa.Column(
            "subscription_id",
            sa.Integer(),
            sa.ForeignKey("student_subscriptions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("player_id", sa.Integer(), sa.ForeignKey("players.id", ondelete="CASCADE"), nullable=False),
        sa.Column("billing_period_start", sa.Date(), nullable=False),
        sa.Column("billing_period_end", sa.Date(), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("subtotal", MONEY, nullable=False),
        sa.Column("discount_amount", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("tax_amount", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("total_amount", MONEY, nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("payment_terms", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("notes", sa.Text(), nullable=True),
        _user_fk("created_by"),
        *_timestamps(),
        sa.CheckConstraint("total_amount >= 0", name="ck_invoices_total_non_negative"),
        sa.CheckConstraint("billing_period_end >= billing_period_start", name="ck_invoices_period_order"),
    )
    op.create_index("ix_invoices_player_id", "invoices", ["player_id"])
    op.create_index("idx_invoices_status_due", "invoices", ["status", "due_date"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("payment_number", sa.String(20), nullable=False, unique=True),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("amount_paid", MONEY, nullable=False),
        sa.Column("payment_method", sa.String(20), nullable=False),
        sa.Column("transaction_id", sa.String(100), nullable=True),
        sa.Column("bank_reference", sa.String(100), nullable=True),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default=sa.text("'completed'")),
        sa.Column("processing_fee", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("net_amount", MONEY, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        _user_fk("recorded_by"),
        *_timestamps(updated=False),
        sa.CheckConstraint("amount_paid > 0", name="ck_payments_amount_positive"),
    )
    op.create_index("ix_payments_invoice_id", "payments", ["invoice_id"])

    op.create_table(
        "scholarships",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("scholarship_name", sa.String(100), nullable=False),
        sa.Column("scholarship_type", sa.String(20), nullable=False),
        sa.Column("player_id", sa.Integer(), sa.ForeignKey("players.id", ondelete="CASCADE"), nullable=False),
        sa.Column("discount_type", sa.String(20), nullable=False),
        sa.Column("discount_value", MONEY, nullable=False),
        sa.Column("max_discount_amount", MONEY, nullable=True),
        sa.Column("valid_from", sa.Date(), nullable=False),
        sa.Column("valid_until", sa.Date(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'active'")),
        _user_fk("awarded_by"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_scholarships_player_id", "scholarships", ["player_id"])

    op.create_table(
        "payment_reminders",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("reminder_type", sa.String(20), nullable=False, server_default=sa.text("'overdue'")),
        sa.Column("reminder_date", sa.Date(), nullable=False),
        sa.Column("days_overdue", sa.Integer(), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("sent_via", sa.String(20), nullable=False, server_default=sa.text("'email'")),
        _user_fk("created_by"),
        *_timestamps(updated=False),
    )
    op.create_index("ix_payment_reminders_invoice_id", "payment_reminders", ["invoice_id"])

    op.create_table(
        "billing_sequences",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("kind", sa.String(10), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("last_value", sa.Integer(), nullable=False),
        sa.UniqueConstraint("kind", "year", name="uq_billing_sequences_kind_year"),
    )

    # ── Announcements ─────────────────────────────────────────────────────
    op.create_table(
        "announcements",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("category", sa.String(20), nullable=False, server_default=sa.text("'general'")),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=True),
        sa.Column("urgent", sa.Boolean(), nullable=False, server_default=sa.false()),
        _user_fk("created_by"),
        *_timestamps(),
    )
    op.create_index("idx_announcements_feed", "announcements", ["urgent", "created_at"])


def downgrade() -> None:
    """Drop every table, children before parents."""
    for table in (
        "announcements",
        "billing_sequences",
        "payment_reminders",
        "scholarships",
        "payments",
        "invoices",
        "student_subscriptions",
        "subscription_plans",
        "match_events",
        "matches",
        "training_qr_tokens",
        "attendance",
        "trainings",
        "parent_child_relationships",
        "users",
        "players",
        "teams",
    ):
        op.drop_table(table)
