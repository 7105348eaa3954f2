"""
Football Academy Backend — Billing Service
============================================

What:  Subscription plans, player subscriptions, invoices, payments,
       scholarships, payment reminders and the financial reports.
How:   All money is Decimal, quantized to 2 places with ROUND_HALF_UP.
       Invoice and payment numbers come from billing_sequences; the
       allocation is retried with tenacity when SQLite reports a lock.
Who:   /api/billing router, dashboard.

Invoice amounts (when not given explicitly):
    subtotal = monthly_price × months in the billing period (min 1)
    discount = subscription % of subtotal + active scholarships, ≤ subtotal
    tax      = TAX_RATE × (subtotal − discount)
    total    = subtotal − discount + tax
    due_date = issue_date + INVOICE_DUE_DAYS

Invoice status after a payment or on refresh:
    cancelled, draft               → unchanged
    completed payments ≥ total     → paid
    completed payments > 0         → partially_paid
    due_date < today               → overdue
    otherwise                      → pending / sent (unchanged)
"""

import logging
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional

from sqlalchemy import func, insert, or_, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from academy.config import settings
from academy.exceptions import ConflictError, NotFoundError, ValidationError
from academy.models.billing import (
    INVOICE_STATUSES,
    BillingSequence,
    Invoice,
    Payment,
    PaymentReminder,
    Scholarship,
    StudentSubscription,
    SubscriptionPlan,
)
from academy.models.player import Player
from academy.models.user import Role, User
from academy.schemas.billing import (
    FinancialSummary,
    InvoiceCreate,
    MonthlyRevenue,
    OutstandingInvoice,
    OutstandingReport,
    OverdueReminderCandidate,
    PaymentCreate,
    PlanCreate,
    PlanUpdate,
    ReminderCreate,
    ScholarshipCreate,
    StudentPaymentHistory,
    SubscriptionCreate,
    SubscriptionUpdate,
)
from academy.services.access import STAFF_ROLES, access_policy

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

INVOICE_PREFIX = "INV"
PAYMENT_PREFIX = "PAY"

# Statuses the recomputation never touches
FROZEN_STATUSES = ("cancelled", "draft")
CLOSED_FOR_PAYMENT = ("cancelled", "paid")
UNPAID_STATUSES = ("sent", "pending", "partially_paid", "overdue")


def money(value) -> Decimal:
    if isinstance(value, float):
        # SQLite aggregates come back as floats
        value = str(value)
    return Decimal(value or 0).quantize(CENT, rounding=ROUND_HALF_UP)


def months_in_period(start: date, end: date) -> int:
    """
    Whole months covered by [start, end], counting a started month.

    2024-01-01..2024-01-31 → 1, 2024-01-01..2024-03-31 → 3,
    2024-01-15..2024-02-14 → 1.
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day >= start.day:
        months += 1
    return max(1, months)


def format_number(prefix: str, year: int, seq: int) -> str:
    return f"{prefix}-{year}-{seq:05d}"


class BillingService:

    # ── Number Allocation ─────────────────────────────────────────────────

    @retry(
        retry=retry_if_exception_type(OperationalError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        # Exponential backoff capped at retry_max_wait, plus up to retry_min_wait of jitter
        wait=wait_exponential(multiplier=settings.retry_min_wait, max=settings.retry_max_wait)
        + wait_random(0, settings.retry_min_wait),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def next_number(self, db: AsyncSession, prefix: str, year: int) -> str:
        """
        Bump the (prefix, year) counter and format the new number.

        Core statements rather than an ORM flush, so a lock error leaves
        the session usable for the next attempt.
        """
        bumped = await db.execute(
            update(BillingSequence)
            .where(BillingSequence.kind == prefix, BillingSequence.year == year)
            .values(last_value=BillingSequence.last_value + 1)
        )
        if bumped.rowcount == 0:
            await db.execute(
                insert(BillingSequence).values(kind=prefix, year=year, last_value=1)
            )
        result = await db.execute(
            select(BillingSequence.last_value).where(
                BillingSequence.kind == prefix, BillingSequence.year == year
            )
        )
        return format_number(prefix, year, result.scalar_one())

    # ── Plans ─────────────────────────────────────────────────────────────

    async def list_plans(
        self, db: AsyncSession, user: User, include_inactive: bool = False
    ) -> List[SubscriptionPlan]:
        stmt = select(SubscriptionPlan)
        if not (include_inactive and user.role == Role.ADMIN.value):
            stmt = stmt.where(SubscriptionPlan.is_active.is_(True))
        result = await db.execute(stmt.order_by(SubscriptionPlan.price_amount, SubscriptionPlan.id))
        return list(result.scalars().all())

    async def get_plan(self, db: AsyncSession, user: User, plan_id: int) -> SubscriptionPlan:
        plan = await db.get(SubscriptionPlan, plan_id)
        if plan is None or (not plan.is_active and user.role != Role.ADMIN.value):
            raise NotFoundError(resource="Subscription plan", resource_id=plan_id)
        return plan

    async def create_plan(self, db: AsyncSession, user: User, data: PlanCreate) -> SubscriptionPlan:
        access_policy.require_roles(user, Role.ADMIN.value)
        values = data.model_dump()
        values["currency"] = (values.get("currency") or settings.default_currency).upper()
        values["price_amount"] = money(values["price_amount"])
        plan = SubscriptionPlan(**values)
        db.add(plan)
        await db.flush()
        logger.info("Plan created: %s (%s %s)", plan.plan_name, plan.price_amount, plan.currency)
        return plan

    async def update_plan(
        self, db: AsyncSession, user: User, plan_id: int, data: PlanUpdate
    ) -> SubscriptionPlan:
        access_policy.require_roles(user, Role.ADMIN.value)
        plan = await self.get_plan(db, user, plan_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            setattr(plan, field, money(value) if field == "price_amount" else value)
        await db.flush()
        return plan

    # ── Subscriptions ─────────────────────────────────────────────────────

    async def get_subscription(self, db: AsyncSession, subscription_id: int) -> StudentSubscription:
        subscription = await db.get(StudentSubscription, subscription_id)
        if subscription is None:
            raise NotFoundError(resource="Subscription", resource_id=subscription_id)
        return subscription

    async def get_subscription_for(
        self, db: AsyncSession, user: User, subscription_id: int
    ) -> StudentSubscription:
        access_policy.require_roles(user, *STAFF_ROLES)
        return await self.get_subscription(db, subscription_id)

    async def list_subscriptions(
        self,
        db: AsyncSession,
        user: User,
        player_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[StudentSubscription]:
        access_policy.require_roles(user, *STAFF_ROLES)
        stmt = select(StudentSubscription)
        if player_id is not None:
            stmt = stmt.where(StudentSubscription.player_id == player_id)
        if status:
            stmt = stmt.where(StudentSubscription.status == status)
        result = await db.execute(stmt.order_by(StudentSubscription.start_date.desc()))
        return list(result.scalars().all())

    async def create_subscription(
        self, db: AsyncSession, user: User, data: SubscriptionCreate
    ) -> StudentSubscription:
        access_policy.require_roles(user, *STAFF_ROLES)
        plan = await db.get(SubscriptionPlan, data.plan_id)
        if plan is None or not plan.is_active:
            raise ValidationError("Plan does not exist or is inactive", field="plan_id")
        if await db.get(Player, data.player_id) is None:
            raise ValidationError(f"Player {data.player_id} does not exist", field="player_id")

        duplicate = await db.execute(
            select(StudentSubscription.id).where(
                StudentSubscription.player_id == data.player_id,
                StudentSubscription.plan_id == data.plan_id,
                StudentSubscription.status == "active",
            )
        )
        if duplicate.first() is not None:
            raise ConflictError(
                "Player already has an active subscription to this plan",
                context={"player_id": data.player_id, "plan_id": data.plan_id},
            )

        values = data.model_dump()
        values["monthly_price"] = money(
            data.monthly_price if data.monthly_price is not None else plan.price_amount
        )
        if data.discount_percentage is None:
            values["discount_percentage"] = plan.discount_percentage
        subscription = StudentSubscription(**values, status="active", created_by=user.id)
        db.add(subscription)
        await db.flush()
        logger.info(
            "Subscription %d: player %d on plan %d at %s",
            subscription.id, subscription.player_id, plan.id, subscription.monthly_price,
        )
        return subscription

    async def update_subscription(
        self, db: AsyncSession, user: User, subscription_id: int, data: SubscriptionUpdate
    ) -> StudentSubscription:
        access_policy.require_roles(user, *STAFF_ROLES)
        subscription = await self.get_subscription(db, subscription_id)
        changes = data.model_dump(exclude_unset=True)
        end_date = changes.get("end_date")
        if end_date is not None and end_date < subscription.start_date:
            raise ValidationError("end_date must not be before start_date", field="end_date")
        for field, value in changes.items():
            if value is None and field in ("monthly_price", "discount_percentage", "payment_method", "status"):
                continue
            setattr(subscription, field, money(value) if field == "monthly_price" else value)
        await db.flush()
        return subscription

    # ── Invoices ──────────────────────────────────────────────────────────

    async def scholarship_discount(
        self, db: AsyncSession, player_id: int, subtotal: Decimal, on: date
    ) -> Decimal:
        result = await db.execute(
            select(Scholarship).where(
                Scholarship.player_id == player_id,
                Scholarship.status == "active",
                Scholarship.valid_from <= on,
                or_(Scholarship.valid_until.is_(None), Scholarship.valid_until >= on),
            )
        )
        total = ZERO
        for scholarship in result.scalars().all():
            if scholarship.discount_type == "percentage":
                amount = subtotal * scholarship.discount_value / 100
                if scholarship.max_discount_amount is not None:
                    amount = min(amount, scholarship.max_discount_amount)
            else:
                amount = scholarship.discount_value
            total += money(amount)
        return total

    async def create_invoice(
        self, db: AsyncSession, user: User, data: InvoiceCreate, today: Optional[date] = None
    ) -> Invoice:
        access_policy.require_roles(user, *STAFF_ROLES)
        if data.billing_period_end < data.billing_period_start:
            raise ValidationError(
                "billing_period_end must not be before billing_period_start",
                field="billing_period_end",
            )
        subscription = await self.get_subscription(db, data.subscription_id)
        plan = await db.get(SubscriptionPlan, subscription.plan_id)

        issue_date = data.issue_date or today or date.today()
        subtotal = money(
            data.subtotal
            if data.subtotal is not None
            else subscription.monthly_price
            * months_in_period(data.billing_period_start, data.billing_period_end)
        )
        if data.discount_amount is not None:
            discount = money(data.discount_amount)
        else:
            discount = money(subtotal * subscription.discount_percentage / 100)
            discount += await self.scholarship_discount(
                db, subscription.player_id, subtotal, issue_date
            )
        discount = min(discount, subtotal)
        tax = money(
            data.tax_amount
            if data.tax_amount is not None
            else settings.tax_rate * (subtotal - discount)
        )

        invoice = Invoice(
            invoice_number=await self.next_number(db, INVOICE_PREFIX, issue_date.year),
            subscription_id=subscription.id,
            player_id=subscription.player_id,
            billing_period_start=data.billing_period_start,
            billing_period_end=data.billing_period_end,
            issue_date=issue_date,
            due_date=data.due_date or issue_date + timedelta(days=settings.invoice_due_days),
            subtotal=subtotal,
            discount_amount=discount,
            tax_amount=tax,
            total_amount=money(subtotal - discount + tax),
            currency=plan.currency if plan else settings.default_currency,
            payment_terms=data.payment_terms or f"Net {settings.invoice_due_days} days",
            status=data.status,
            notes=data.notes,
            created_by=user.id,
        )
        db.add(invoice)
        await db.flush()
        logger.info(
            "Invoice %s issued to player %d: %s %s",
            invoice.invoice_number, invoice.player_id, invoice.total_amount, invoice.currency,
        )
        return invoice

    async def refresh_overdue(self, db: AsyncSession, today: Optional[date] = None) -> int:
        """Mark unpaid pending/sent invoices past their due date as overdue."""
        result = await db.execute(
            update(Invoice)
            .where(
                Invoice.status.in_(("pending", "sent")),
                Invoice.due_date < (today or date.today()),
            )
            .values(status="overdue")
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount:
            logger.info("Marked %d invoice(s) overdue", result.rowcount)
        return result.rowcount

    async def list_invoices(
        self,
        db: AsyncSession,
        user: User,
        status: Optional[str] = None,
        player_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Invoice]:
        await self.refresh_overdue(db)
        stmt = select(Invoice)
        if not access_policy.is_staff(user):
            visible = await access_policy.visible_player_ids(db, user)
            if not visible:
                return []
            stmt = stmt.where(Invoice.player_id.in_(visible))
        if status:
            stmt = stmt.where(Invoice.status == status)
        if player_id is not None:
            stmt = stmt.where(Invoice.player_id == player_id)
        if date_from is not None:
            stmt = stmt.where(Invoice.issue_date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Invoice.issue_date <= date_to)
        result = await db.execute(stmt.order_by(Invoice.issue_date.desc(), Invoice.id.desc()))
        return list(result.scalars().all())

    async def get_invoice(self, db: AsyncSession, invoice_id: int) -> Invoice:
        invoice = await db.get(Invoice, invoice_id)
        if invoice is None:
            raise NotFoundError(resource="Invoice", resource_id=invoice_id)
        return invoice

    async def get_invoice_for(self, db: AsyncSession, user: User, invoice_id: int) -> Invoice:
        invoice = await self.get_invoice(db, invoice_id)
        if not access_policy.is_staff(user):
            player = await db.get(Player, invoice.player_id)
            await access_policy.ensure_player_access(db, user, player)
        return invoice

    async def update_invoice_status(
        self, db: AsyncSession, user: User, invoice_id: int, status: str
    ) -> Invoice:
        access_policy.require_roles(user, *STAFF_ROLES)
        if status not in INVOICE_STATUSES:
            raise ValidationError(
                f"Unknown invoice status '{status}'",
                field="status",
                context={"allowed": list(INVOICE_STATUSES)},
            )
        invoice = await self.get_invoice(db, invoice_id)
        previous, invoice.status = invoice.status, status
        await db.flush()
        logger.info("Invoice %s status %s → %s", invoice.invoice_number, previous, status)
        return invoice

    async def amount_paid(self, db: AsyncSession, invoice_id: int) -> Decimal:
        result = await db.execute(
            select(func.coalesce(func.sum(Payment.amount_paid), 0)).where(
                Payment.invoice_id == invoice_id, Payment.payment_status == "completed"
            )
        )
        return money(result.scalar_one())

    async def recompute_status(
        self, db: AsyncSession, invoice: Invoice, today: Optional[date] = None
    ) -> str:
        if invoice.status in FROZEN_STATUSES:
            return invoice.status
        paid = await self.amount_paid(db, invoice.id)
        if paid >= invoice.total_amount:
            invoice.status = "paid"
        elif paid > 0:
            invoice.status = "partially_paid"
        elif invoice.due_date < (today or date.today()):
            invoice.status = "overdue"
        await db.flush()
        return invoice.status

    # ── Payments ──────────────────────────────────────────────────────────

    async def list_payments(
        self,
        db: AsyncSession,
        user: User,
        invoice_id: Optional[int] = None,
        player_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[Payment]:
        access_policy.require_roles(user, *STAFF_ROLES)
        stmt = select(Payment)
        if invoice_id is not None:
            stmt = stmt.where(Payment.invoice_id == invoice_id)
        if player_id is not None:
            stmt = stmt.join(Invoice, Invoice.id == Payment.invoice_id).where(
                Invoice.player_id == player_id
            )
        if status:
            stmt = stmt.where(Payment.payment_status == status)
        result = await db.execute(stmt.order_by(Payment.payment_date.desc(), Payment.id.desc()))
        return list(result.scalars().all())

    async def record_payment(
        self, db: AsyncSession, user: User, data: PaymentCreate, today: Optional[date] = None
    ) -> Payment:
        access_policy.require_roles(user, *STAFF_ROLES)
        invoice = await self.get_invoice(db, data.invoice_id)
        if invoice.status in CLOSED_FOR_PAYMENT:
            raise ConflictError(
                f"Invoice {invoice.invoice_number} is {invoice.status}; no further payments accepted",
                context={"invoice_id": invoice.id, "status": invoice.status},
            )

        amount = money(data.amount_paid)
        fee = money(data.processing_fee)
        payment = Payment(
            payment_number=await self.next_number(db, PAYMENT_PREFIX, data.payment_date.year),
            invoice_id=invoice.id,
            payment_date=data.payment_date,
            amount_paid=amount,
            payment_method=data.payment_method,
            transaction_id=data.transaction_id,
            bank_reference=data.bank_reference,
            payment_status=data.payment_status,
            processing_fee=fee,
            net_amount=money(amount - fee),
            notes=data.notes,
            recorded_by=user.id,
        )
        db.add(payment)
        await db.flush()
        status = await self.recompute_status(db, invoice, today=today)
        logger.info(
            "Payment %s of %s recorded on %s (invoice now %s)",
            payment.payment_number, amount, invoice.invoice_number, status,
        )
        return payment

    # ── Scholarships ──────────────────────────────────────────────────────

    async def list_scholarships(
        self,
        db: AsyncSession,
        user: User,
        player_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[Scholarship]:
        access_policy.require_roles(user, *STAFF_ROLES)
        stmt = select(Scholarship)
        if player_id is not None:
            stmt = stmt.where(Scholarship.player_id == player_id)
        if status:
            stmt = stmt.where(Scholarship.status == status)
        result = await db.execute(stmt.order_by(Scholarship.valid_from.desc()))
        return list(result.scalars().all())

    async def create_scholarship(
        self, db: AsyncSession, user: User, data: ScholarshipCreate
    ) -> Scholarship:
        access_policy.require_roles(user, *STAFF_ROLES)
        if await db.get(Player, data.player_id) is None:
            raise ValidationError(f"Player {data.player_id} does not exist", field="player_id")
        scholarship = Scholarship(**data.model_dump(), status="active", awarded_by=user.id)
        db.add(scholarship)
        await db.flush()
        logger.info(
            "Scholarship '%s' awarded to player %d by %s",
            scholarship.scholarship_name, scholarship.player_id, user.username,
        )
        return scholarship

    # ── Reports ───────────────────────────────────────────────────────────

    async def _paid_by_invoice(self, db: AsyncSession) -> Dict[int, Decimal]:
        result = await db.execute(
            select(Payment.invoice_id, func.sum(Payment.amount_paid))
            .where(Payment.payment_status == "completed")
            .group_by(Payment.invoice_id)
        )
        return {invoice_id: money(total) for invoice_id, total in result.all()}

    async def outstanding(
        self, db: AsyncSession, user: User, today: Optional[date] = None
    ) -> OutstandingReport:
        access_policy.require_roles(user, *STAFF_ROLES)
        today = today or date.today()
        rows = await db.execute(
            select(Invoice, Player.name)
            .join(Player, Player.id == Invoice.player_id)
            .where(Invoice.status.in_(UNPAID_STATUSES))
        )
        paid = await self._paid_by_invoice(db)

        invoices = []
        for invoice, player_name in rows.all():
            amount_paid = paid.get(invoice.id, ZERO)
            balance = money(invoice.total_amount - amount_paid)
            if balance <= 0:
                continue
            invoices.append(
                OutstandingInvoice(
                    invoice_id=invoice.id,
                    invoice_number=invoice.invoice_number,
                    player_id=invoice.player_id,
                    player_name=player_name,
                    due_date=invoice.due_date,
                    total_amount=invoice.total_amount,
                    amount_paid=amount_paid,
                    balance=balance,
                    status=invoice.status,
                    days_overdue=max(0, (today - invoice.due_date).days),
                )
            )
        invoices.sort(key=lambda i: (-i.days_overdue, i.invoice_number))
        return OutstandingReport(
            invoices=invoices,
            total_outstanding=money(sum((i.balance for i in invoices), ZERO)),
        )

    async def monthly_revenue(
        self, db: AsyncSession, user: User, year: Optional[int] = None
    ) -> List[MonthlyRevenue]:
        access_policy.require_roles(user, *STAFF_ROLES)
        stmt = select(Payment).where(Payment.payment_status == "completed")
        if year is not None:
            stmt = stmt.where(
                Payment.payment_date >= date(year, 1, 1),
                Payment.payment_date <= date(year, 12, 31),
            )
        buckets: Dict[str, MonthlyRevenue] = {}
        for payment in (await db.execute(stmt)).scalars().all():
            key = payment.payment_date.strftime("%Y-%m")
            bucket = buckets.setdefault(
                key,
                MonthlyRevenue(
                    month=key, payment_count=0,
                    total_revenue=ZERO, total_fees=ZERO, net_revenue=ZERO,
                ),
            )
            bucket.payment_count += 1
            bucket.total_revenue += payment.amount_paid
            bucket.total_fees += payment.processing_fee
            bucket.net_revenue += payment.net_amount
        return [buckets[k] for k in sorted(buckets, reverse=True)]

    async def payment_history(self, db: AsyncSession, user: User) -> List[StudentPaymentHistory]:
        access_policy.require_roles(user, *STAFF_ROLES)
        rows = await db.execute(
            select(Invoice.id, Invoice.player_id, Invoice.total_amount, Player.name)
            .join(Player, Player.id == Invoice.player_id)
            .where(Invoice.status != "cancelled")
        )
        paid = await self._paid_by_invoice(db)

        history: Dict[int, StudentPaymentHistory] = {}
        for invoice_id, player_id, total, player_name in rows.all():
            entry = history.setdefault(
                player_id,
                StudentPaymentHistory(
                    player_id=player_id, player_name=player_name, invoice_count=0,
                    total_invoiced=ZERO, total_paid=ZERO, balance_outstanding=ZERO,
                ),
            )
            entry.invoice_count += 1
            entry.total_invoiced += total
            entry.total_paid += paid.get(invoice_id, ZERO)
        for entry in history.values():
            entry.balance_outstanding = money(entry.total_invoiced - entry.total_paid)
        return sorted(
            history.values(), key=lambda e: (-e.balance_outstanding, e.player_name)
        )

    async def financial_summary(self, db: AsyncSession) -> FinancialSummary:
        """Academy-wide totals. Callers check the role."""
        subs = (
            await db.execute(
                select(
                    func.count(StudentSubscription.id),
                    func.count(StudentSubscription.id).filter(StudentSubscription.status == "active"),
                    func.avg(StudentSubscription.monthly_price).filter(
                        StudentSubscription.status == "active"
                    ),
                )
            )
        ).one()
        invoices = (
            await db.execute(
                select(
                    func.count(Invoice.id),
                    func.count(Invoice.id).filter(Invoice.status == "paid"),
                    func.count(Invoice.id).filter(Invoice.status == "overdue"),
                )
            )
        ).one()
        revenue = (
            await db.execute(
                select(func.coalesce(func.sum(Payment.amount_paid), 0)).where(
                    Payment.payment_status == "completed"
                )
            )
        ).scalar_one()
        scholarships = (
            await db.execute(
                select(func.count(Scholarship.id)).where(Scholarship.status == "active")
            )
        ).scalar_one()
        return FinancialSummary(
            total_subscriptions=subs[0],
            active_subscriptions=subs[1],
            avg_monthly_price=money(subs[2]) if subs[2] is not None else None,
            total_invoices=invoices[0],
            paid_invoices=invoices[1],
            overdue_invoices=invoices[2],
            total_revenue=money(revenue),
            active_scholarships=scholarships,
        )

    async def financial_summary_for(self, db: AsyncSession, user: User) -> FinancialSummary:
        access_policy.require_roles(user, *STAFF_ROLES)
        await self.refresh_overdue(db)
        return await self.financial_summary(db)

    async def outstanding_for_player(self, db: AsyncSession, player_id: int) -> List[Invoice]:
        result = await db.execute(
            select(Invoice)
            .where(Invoice.player_id == player_id, Invoice.status.in_(UNPAID_STATUSES))
            .order_by(Invoice.due_date)
        )
        return list(result.scalars().all())

    # ── Reminders ─────────────────────────────────────────────────────────

    async def overdue_for_reminder(
        self, db: AsyncSession, user: User, today: Optional[date] = None
    ) -> List[OverdueReminderCandidate]:
        access_policy.require_roles(user, Role.ADMIN.value)
        today = today or date.today()
        reminded_today = select(PaymentReminder.invoice_id).where(
            PaymentReminder.reminder_date == today
        )
        result = await db.execute(
            select(Invoice, Player.name, StudentSubscription.billing_contact_email)
            .join(Player, Player.id == Invoice.player_id)
            .outerjoin(StudentSubscription, StudentSubscription.id == Invoice.subscription_id)
            .where(
                Invoice.status.in_(("pending", "overdue")),
                Invoice.due_date < today,
                Invoice.id.not_in(reminded_today),
            )
            .order_by(Invoice.due_date)
        )
        return [
            OverdueReminderCandidate(
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                player_id=invoice.player_id,
                player_name=player_name,
                billing_contact_email=email,
                due_date=invoice.due_date,
                total_amount=invoice.total_amount,
                days_overdue=(today - invoice.due_date).days,
            )
            for invoice, player_name, email in result.all()
        ]

    async def create_reminder(
        self, db: AsyncSession, user: User, data: ReminderCreate, today: Optional[date] = None
    ) -> PaymentReminder:
        access_policy.require_roles(user, *STAFF_ROLES)
        invoice = await self.get_invoice(db, data.invoice_id)
        today = today or date.today()
        reminder = PaymentReminder(
            invoice_id=invoice.id,
            reminder_type=data.reminder_type,
            reminder_date=today,
            days_overdue=max(0, (today - invoice.due_date).days),
            message=data.message,
            sent_via=data.sent_via,
            created_by=user.id,
        )
        db.add(reminder)
        await db.flush()
        logger.info(
            "Reminder (%s) logged for invoice %s, %d days overdue",
            reminder.reminder_type, invoice.invoice_number, reminder.days_overdue,
        )
        return reminder


billing_service = BillingService()
