"""
Football Academy Backend — Billing Schemas
============================================

What:  Request/response models for plans, subscriptions, invoices,
       payments, scholarships, reminders and financial reports.
How:   Money fields are Decimal end to end. Pydantic serializes Decimal
       as a JSON string ("12500.00") so no precision is lost on the wire.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

PlanType = Literal["monthly", "quarterly", "annual", "per_session"]
SubscriptionStatus = Literal["active", "paused", "cancelled", "expired"]
InvoiceStatus = Literal[
    "draft", "sent", "pending", "partially_paid", "paid", "overdue", "cancelled"
]
PaymentMethod = Literal["bank_transfer", "cash", "card", "online"]
PaymentStatus = Literal["pending", "completed", "failed", "refunded"]
ScholarshipType = Literal["merit", "need_based", "sibling", "sponsorship"]
DiscountType = Literal["percentage", "fixed_amount"]


# ── Plans ─────────────────────────────────────────────────────────────────

class PlanCreate(BaseModel):
    plan_name: str = Field(min_length=1, max_length=100)
    plan_type: PlanType = "monthly"
    age_group: Optional[str] = Field(default=None, max_length=20)
    training_level: Optional[str] = Field(default=None, max_length=30)
    price_amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    sessions_per_week: int = Field(default=2, ge=1, le=7)
    includes_equipment: bool = False
    includes_matches: bool = True
    includes_insurance: bool = False
    discount_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    description: Optional[str] = None
    is_active: bool = True


class PlanUpdate(BaseModel):
    plan_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    plan_type: Optional[PlanType] = None
    age_group: Optional[str] = Field(default=None, max_length=20)
    training_level: Optional[str] = Field(default=None, max_length=30)
    price_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    sessions_per_week: Optional[int] = Field(default=None, ge=1, le=7)
    includes_equipment: Optional[bool] = None
    includes_matches: Optional[bool] = None
    includes_insurance: Optional[bool] = None
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class PlanResponse(BaseModel):
    id: int
    plan_name: str
    plan_type: str
    age_group: Optional[str] = None
    training_level: Optional[str] = None
    price_amount: Decimal
    currency: str
    sessions_per_week: int
    includes_equipment: bool
    includes_matches: bool
    includes_insurance: bool
    discount_percentage: Decimal
    description: Optional[str] = None
    is_active: bool

    model_config = {"from_attributes": True}


# ── Subscriptions ─────────────────────────────────────────────────────────

class SubscriptionCreate(BaseModel):
    player_id: int
    plan_id: int
    start_date: date
    end_date: Optional[date] = None
    monthly_price: Optional[Decimal] = Field(
        default=None, ge=0, max_digits=12, decimal_places=2,
        description="Defaults to the plan price",
    )
    discount_percentage: Optional[Decimal] = Field(
        default=None, ge=0, le=100, description="Defaults to the plan discount"
    )
    payment_method: PaymentMethod = "bank_transfer"
    billing_contact_name: Optional[str] = Field(default=None, max_length=120)
    billing_contact_email: Optional[EmailStr] = None
    billing_contact_phone: Optional[str] = Field(default=None, max_length=40)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self) -> "SubscriptionCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class SubscriptionUpdate(BaseModel):
    end_date: Optional[date] = None
    monthly_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    payment_method: Optional[PaymentMethod] = None
    billing_contact_name: Optional[str] = Field(default=None, max_length=120)
    billing_contact_email: Optional[EmailStr] = None
    billing_contact_phone: Optional[str] = Field(default=None, max_length=40)
    status: Optional[SubscriptionStatus] = None
    notes: Optional[str] = None


class SubscriptionResponse(BaseModel):
    id: int
    player_id: int
    plan_id: int
    start_date: date
    end_date: Optional[date] = None
    monthly_price: Decimal
    discount_percentage: Decimal
    payment_method: str
    billing_contact_name: Optional[str] = None
    billing_contact_email: Optional[str] = None
    billing_contact_phone: Optional[str] = None
    status: str
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Invoices ──────────────────────────────────────────────────────────────

class InvoiceCreate(BaseModel):
    """
    Amounts left empty are derived from the subscription: subtotal from the
    monthly price and the number of months in the period, discount from the
    subscription percentage plus any active scholarship, tax from TAX_RATE.
    """
    subscription_id: int
    billing_period_start: date
    billing_period_end: date
    issue_date: Optional[date] = Field(default=None, description="Defaults to today")
    due_date: Optional[date] = Field(default=None, description="Defaults to issue + INVOICE_DUE_DAYS")
    subtotal: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    discount_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    tax_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    payment_terms: Optional[str] = Field(default=None, max_length=100)
    status: Literal["draft", "sent", "pending"] = "pending"
    notes: Optional[str] = None


class InvoiceStatusUpdate(BaseModel):
    # Plain string so unknown values get the academy's 400 response
    status: str


class InvoiceResponse(BaseModel):
    id: int
    invoice_number: str
    subscription_id: Optional[int] = None
    player_id: int
    billing_period_start: date
    billing_period_end: date
    issue_date: date
    due_date: date
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency: str
    payment_terms: Optional[str] = None
    status: str
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Payments ──────────────────────────────────────────────────────────────

class PaymentCreate(BaseModel):
    invoice_id: int
    payment_date: date
    amount_paid: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    payment_method: PaymentMethod
    transaction_id: Optional[str] = Field(default=None, max_length=100)
    bank_reference: Optional[str] = Field(default=None, max_length=100)
    payment_status: PaymentStatus = "completed"
    processing_fee: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    id: int
    payment_number: str
    invoice_id: int
    payment_date: date
    amount_paid: Decimal
    payment_method: str
    transaction_id: Optional[str] = None
    bank_reference: Optional[str] = None
    payment_status: str
    processing_fee: Decimal
    net_amount: Decimal
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Scholarships ──────────────────────────────────────────────────────────

class ScholarshipCreate(BaseModel):
    scholarship_name: str = Field(min_length=1, max_length=100)
    scholarship_type: ScholarshipType
    player_id: int
    discount_type: DiscountType
    discount_value: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    max_discount_amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    valid_from: date
    valid_until: Optional[date] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_values(self) -> "ScholarshipCreate":
        if self.discount_type == "percentage" and self.discount_value > 100:
            raise ValueError("percentage discount_value must be between 0 and 100")
        if self.valid_until is not None and self.valid_until < self.valid_from:
            raise ValueError("valid_until must not be before valid_from")
        return self


class ScholarshipResponse(BaseModel):
    id: int
    scholarship_name: str
    scholarship_type: str
    player_id: int
    discount_type: str
    discount_value: Decimal
    max_discount_amount: Optional[Decimal] = None
    valid_from: date
    valid_until: Optional[date] = None
    status: str
    awarded_by: Optional[int] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


# ── Reminders ─────────────────────────────────────────────────────────────

class ReminderCreate(BaseModel):
    invoice_id: int
    reminder_type: Literal["first", "second", "final", "overdue"] = "overdue"
    message: Optional[str] = None
    sent_via: Literal["email", "sms", "phone", "letter"] = "email"


class ReminderResponse(BaseModel):
    id: int
    invoice_id: int
    reminder_type: str
    reminder_date: date
    days_overdue: int
    message: Optional[str] = None
    sent_via: str

    model_config = {"from_attributes": True}


# ── Reports ───────────────────────────────────────────────────────────────

class OutstandingInvoice(BaseModel):
    invoice_id: int
    invoice_number: str
    player_id: int
    player_name: str
    due_date: date
    total_amount: Decimal
    amount_paid: Decimal
    balance: Decimal
    status: str
    days_overdue: int


class OverdueReminderCandidate(BaseModel):
    invoice_id: int
    invoice_number: str
    player_id: int
    player_name: str
    billing_contact_email: Optional[str] = None
    due_date: date
    total_amount: Decimal
    days_overdue: int


class MonthlyRevenue(BaseModel):
    month: str = Field(description="YYYY-MM")
    payment_count: int
    total_revenue: Decimal
    total_fees: Decimal
    net_revenue: Decimal


class StudentPaymentHistory(BaseModel):
    player_id: int
    player_name: str
    invoice_count: int
    total_invoiced: Decimal
    total_paid: Decimal
    balance_outstanding: Decimal


class FinancialSummary(BaseModel):
    total_subscriptions: int
    active_subscriptions: int
    total_invoices: int
    paid_invoices: int
    overdue_invoices: int
    total_revenue: Decimal
    avg_monthly_price: Optional[Decimal] = None
    active_scholarships: int


class OutstandingReport(BaseModel):
    invoices: List[OutstandingInvoice]
    total_outstanding: Decimal
