"""
Football Academy Backend — Billing Models
===========================================

What:  Plans, player subscriptions, invoices, payments, scholarships and
       payment reminders.
How:   Money columns are Numeric(12, 2) and map to Decimal. Invoice and
       payment numbers (INV-2024-00001, PAY-2024-00001) are allocated by
       BillingService from billing_sequences, one counter row per
       (kind, year), so a number is never handed out twice.

Relationships:
    subscription_plans 1 ─── * student_subscriptions * ─── 1 players
    student_subscriptions 1 ─── * invoices 1 ─── * payments
    invoices 1 ─── * payment_reminders
    players 1 ─── * scholarships
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    false,
    text,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column

from academy.database import Base, utcnow

Money = Numeric(12, 2, asdecimal=True)

PLAN_TYPES = ("monthly", "quarterly", "annual", "per_session")
SUBSCRIPTION_STATUSES = ("active", "paused", "cancelled", "expired")
INVOICE_STATUSES = (
    "draft",
    "sent",
    "pending",
    "partially_paid",
    "paid",
    "overdue",
    "cancelled",
)
PAYMENT_METHODS = ("bank_transfer", "cash", "card", "online")
PAYMENT_STATUSES = ("pending", "completed", "failed", "refunded")
SCHOLARSHIP_TYPES = ("merit", "need_based", "sibling", "sponsorship")
DISCOUNT_TYPES = ("percentage", "fixed_amount")
SCHOLARSHIP_STATUSES = ("active", "expired", "revoked")


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    plan_name: Mapped[str] = mapped_column(String(100), nullable=False)
    plan_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="monthly", server_default=text("'monthly'")
    )
    age_group: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    training_level: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    price_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    currency: Mapped[str] = mapped_column(
        String(3), nullable=False, default="HUF", server_default=text("'HUF'")
    )
    sessions_per_week: Mapped[int] = mapped_column(
        Integer, nullable=False, default=2, server_default=text("2")
    )
    includes_equipment: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    includes_matches: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    includes_insurance: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    discount_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("0"), server_default=text("0")
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        CheckConstraint("price_amount >= 0", name="ck_plans_price_non_negative"),
    )


class StudentSubscription(Base):
    __tablename__ = "student_subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True
    )
    plan_id: Mapped[int] = mapped_column(
        ForeignKey("subscription_plans.id", ondelete="RESTRICT"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    monthly_price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    discount_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("0"), server_default=text("0")
    )
    payment_method: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="bank_transfer",
        server_default=text("'bank_transfer'"),
    )
    billing_contact_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    billing_contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    billing_contact_phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active", server_default=text("'active'")
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invoice_number: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    subscription_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("student_subscriptions.id", ondelete="SET NULL"), nullable=True
    )
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True
    )
    billing_period_start: Mapped[date] = mapped_column(Date, nullable=False)
    billing_period_end: Mapped[date] = mapped_column(Date, nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)

    subtotal: Mapped[Decimal] = mapped_column(Money, nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(
        Money, nullable=False, default=Decimal("0"), server_default=text("0")
    )
    tax_amount: Mapped[Decimal] = mapped_column(
        Money, nullable=False, default=Decimal("0"), server_default=text("0")
    )
    total_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    payment_terms: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", server_default=text("'pending'")
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_invoices_total_non_negative"),
        CheckConstraint(
            "billing_period_end >= billing_period_start", name="ck_invoices_period_order"
        ),
        Index("idx_invoices_status_due", "status", "due_date"),
    )


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    payment_number: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    invoice_id: Mapped[int] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(Money, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bank_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    payment_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="completed", server_default=text("'completed'")
    )
    processing_fee: Mapped[Decimal] = mapped_column(
        Money, nullable=False, default=Decimal("0"), server_default=text("0")
    )
    net_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recorded_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("amount_paid > 0", name="ck_payments_amount_positive"),
    )


class Scholarship(Base):
    __tablename__ = "scholarships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scholarship_name: Mapped[str] = mapped_column(String(100), nullable=False)
    scholarship_type: Mapped[str] = mapped_column(String(20), nullable=False)
    player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True
    )
    discount_type: Mapped[str] = mapped_column(String(20), nullable=False)
    discount_value: Mapped[Decimal] = mapped_column(Money, nullable=False)
    # Ceiling for percentage scholarships; NULL means uncapped
    max_discount_amount: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_until: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active", server_default=text("'active'")
    )
    awarded_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class PaymentReminder(Base):
    __tablename__ = "payment_reminders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invoice_id: Mapped[int] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    reminder_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="overdue", server_default=text("'overdue'")
    )
    reminder_date: Mapped[date] = mapped_column(Date, nullable=False)
    days_overdue: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sent_via: Mapped[str] = mapped_column(
        String(20), nullable=False, default="email", server_default=text("'email'")
    )
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class BillingSequence(Base):
    """Per-year counter backing invoice and payment numbers."""

    __tablename__ = "billing_sequences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(10), nullable=False)  # "INV" or "PAY"
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("kind", "year", name="uq_billing_sequences_kind_year"),
    )
