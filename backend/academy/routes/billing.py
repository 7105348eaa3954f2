"""
Football Academy Backend — Billing Routes
===========================================

What:  /api/billing/* — plans, subscriptions, invoices, payments,
       scholarships, reminders and financial reports.

Who may call what:
    plans (read)               any authenticated user
    plans (write)              admin
    invoices (read)            staff: all; parent: children; player: own
    everything else            admin or coach
    overdue-for-reminder       admin
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy.database import get_db_session
from academy.models.user import User
from academy.routes.deps import get_current_user
from academy.schemas.billing import (
    FinancialSummary,
    InvoiceCreate,
    InvoiceResponse,
    InvoiceStatusUpdate,
    MonthlyRevenue,
    OutstandingReport,
    OverdueReminderCandidate,
    PaymentCreate,
    PaymentResponse,
    PlanCreate,
    PlanResponse,
    PlanUpdate,
    ReminderCreate,
    ReminderResponse,
    ScholarshipCreate,
    ScholarshipResponse,
    StudentPaymentHistory,
    SubscriptionCreate,
    SubscriptionResponse,
    SubscriptionUpdate,
)
from academy.schemas.common import ERROR_RESPONSES
from academy.services.billing_service import billing_service

router = APIRouter(prefix="/api/billing", tags=["Billing"], responses=ERROR_RESPONSES)


# ── Plans ─────────────────────────────────────────────────────────────────

@router.get("/plans", response_model=List[PlanResponse], summary="Subscription plans")
async def list_plans(
    include_inactive: bool = Query(default=False, description="Admin only"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PlanResponse]:
    plans = await billing_service.list_plans(db, user, include_inactive=include_inactive)
    return [PlanResponse.model_validate(p) for p in plans]


@router.get("/plans/{plan_id}", response_model=PlanResponse, summary="Plan detail")
async def get_plan(
    plan_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlanResponse:
    return PlanResponse.model_validate(await billing_service.get_plan(db, user, plan_id))


@router.post("/plans", response_model=PlanResponse, status_code=status.HTTP_201_CREATED, summary="Create a plan")
async def create_plan(
    body: PlanCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlanResponse:
    return PlanResponse.model_validate(await billing_service.create_plan(db, user, body))


@router.put("/plans/{plan_id}", response_model=PlanResponse, summary="Update a plan")
async def update_plan(
    plan_id: int,
    body: PlanUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PlanResponse:
    return PlanResponse.model_validate(await billing_service.update_plan(db, user, plan_id, body))


# ── Subscriptions ─────────────────────────────────────────────────────────

@router.get("/subscriptions", response_model=List[SubscriptionResponse], summary="Subscriptions")
async def list_subscriptions(
    player_id: Optional[int] = Query(default=None),
    status: Optional[str] = Query(default=None, description="Subscription status"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[SubscriptionResponse]:
    subs = await billing_service.list_subscriptions(db, user, player_id=player_id, status=status)
    return [SubscriptionResponse.model_validate(s) for s in subs]


@router.get("/subscriptions/{subscription_id}", response_model=SubscriptionResponse, summary="Subscription detail")
async def get_subscription(
    subscription_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SubscriptionResponse:
    return SubscriptionResponse.model_validate(
        await billing_service.get_subscription_for(db, user, subscription_id)
    )


@router.post(
    "/subscriptions",
    response_model=SubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Subscribe a player to a plan",
)
async def create_subscription(
    body: SubscriptionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SubscriptionResponse:
    return SubscriptionResponse.model_validate(
        await billing_service.create_subscription(db, user, body)
    )


@router.put("/subscriptions/{subscription_id}", response_model=SubscriptionResponse, summary="Update a subscription")
async def update_subscription(
    subscription_id: int,
    body: SubscriptionUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SubscriptionResponse:
    return SubscriptionResponse.model_validate(
        await billing_service.update_subscription(db, user, subscription_id, body)
    )


# ── Invoices ──────────────────────────────────────────────────────────────

@router.get("/invoices", response_model=List[InvoiceResponse], summary="Invoices visible to the caller")
async def list_invoices(
    status: Optional[str] = Query(default=None, description="Invoice status"),
    player_id: Optional[int] = Query(default=None),
    date_from: Optional[date] = Query(default=None, description="Issue date from"),
    date_to: Optional[date] = Query(default=None, description="Issue date to"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[InvoiceResponse]:
    invoices = await billing_service.list_invoices(
        db, user, status=status, player_id=player_id, date_from=date_from, date_to=date_to
    )
    return [InvoiceResponse.model_validate(i) for i in invoices]


@router.get("/invoices/{invoice_id}", response_model=InvoiceResponse, summary="Invoice detail")
async def get_invoice(
    invoice_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InvoiceResponse:
    return InvoiceResponse.model_validate(await billing_service.get_invoice_for(db, user, invoice_id))


@router.post(
    "/invoices",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue an invoice for a subscription",
)
async def create_invoice(
    body: InvoiceCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InvoiceResponse:
    return InvoiceResponse.model_validate(await billing_service.create_invoice(db, user, body))


@router.put("/invoices/{invoice_id}/status", response_model=InvoiceResponse, summary="Set invoice status")
async def update_invoice_status(
    invoice_id: int,
    body: InvoiceStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InvoiceResponse:
    return InvoiceResponse.model_validate(
        await billing_service.update_invoice_status(db, user, invoice_id, body.status)
    )


# ── Payments ──────────────────────────────────────────────────────────────

@router.get("/payments", response_model=List[PaymentResponse], summary="Payments")
async def list_payments(
    invoice_id: Optional[int] = Query(default=None),
    player_id: Optional[int] = Query(default=None),
    status: Optional[str] = Query(default=None, description="Payment status"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PaymentResponse]:
    payments = await billing_service.list_payments(
        db, user, invoice_id=invoice_id, player_id=player_id, status=status
    )
    return [PaymentResponse.model_validate(p) for p in payments]


@router.post(
    "/payments",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a payment against an invoice",
)
async def record_payment(
    body: PaymentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PaymentResponse:
    return PaymentResponse.model_validate(await billing_service.record_payment(db, user, body))


# ── Scholarships ──────────────────────────────────────────────────────────

@router.get("/scholarships", response_model=List[ScholarshipResponse], summary="Scholarships")
async def list_scholarships(
    player_id: Optional[int] = Query(default=None),
    status: Optional[str] = Query(default=None, description="Scholarship status"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[ScholarshipResponse]:
    rows = await billing_service.list_scholarships(db, user, player_id=player_id, status=status)
    return [ScholarshipResponse.model_validate(s) for s in rows]


@router.post(
    "/scholarships",
    response_model=ScholarshipResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Award a scholarship",
)
async def create_scholarship(
    body: ScholarshipCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ScholarshipResponse:
    return ScholarshipResponse.model_validate(await billing_service.create_scholarship(db, user, body))


# ── Reports ───────────────────────────────────────────────────────────────

@router.get("/reports/outstanding", response_model=OutstandingReport, summary="Unpaid invoices")
async def outstanding_report(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> OutstandingReport:
    return await billing_service.outstanding(db, user)


@router.get("/reports/monthly-revenue", response_model=List[MonthlyRevenue], summary="Revenue by month")
async def monthly_revenue(
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[MonthlyRevenue]:
    return await billing_service.monthly_revenue(db, user, year=year)


@router.get(
    "/reports/payment-history",
    response_model=List[StudentPaymentHistory],
    summary="Invoiced vs paid per player",
)
async def payment_history(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[StudentPaymentHistory]:
    return await billing_service.payment_history(db, user)


@router.get("/reports/summary", response_model=FinancialSummary, summary="Financial summary")
async def financial_summary(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FinancialSummary:
    return await billing_service.financial_summary_for(db, user)


# ── Reminders ─────────────────────────────────────────────────────────────

@router.get(
    "/reminders/overdue",
    response_model=List[OverdueReminderCandidate],
    summary="Overdue invoices not yet reminded today (admin)",
)
async def overdue_for_reminder(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[OverdueReminderCandidate]:
    return await billing_service.overdue_for_reminder(db, user)


@router.post(
    "/reminders",
    response_model=ReminderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log a payment reminder",
)
async def create_reminder(
    body: ReminderCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReminderResponse:
    return ReminderResponse.model_validate(await billing_service.create_reminder(db, user, body))
