"""
Ledger Engine

DESIGN DECISION: Every figure here is DERIVED on read from the stored
collections. Nothing is cached and nothing is written back.

Balances are keyed by flat number by value: a delivery or payment belongs
to whichever customer currently has its flat number.

GUARANTEES:
- Pure functions, no hidden state
- Outstanding is signed (negative means the customer overpaid)
- Payment snapshots (total_bill, status) are only produced here at
  creation time and are never recomputed for existing payments
"""

from collections.abc import Iterable, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, TypeVar, Union

from waterledger.config import get_settings
from waterledger.ledger.dates import days_between, month_range, period_range, today, week_range
from waterledger.models.records import (
    Collections,
    Customer,
    Delivery,
    Expense,
    Payment,
    PaymentStatus,
)
from waterledger.models.reports import (
    AccountStanding,
    CustomerAccount,
    DashboardStats,
    DateRange,
    OverdueDue,
    Period,
    RangeStats,
)


ZERO = Decimal("0")

DatedRecord = TypeVar("DatedRecord", Delivery, Payment, Expense)
DateLike = Union[date, str]


def _as_date(value: DateLike) -> date:
    if isinstance(value, str):
        return date.fromisoformat(value)
    return value


def in_range(records: Iterable[DatedRecord], start: DateLike, end: DateLike) -> list[DatedRecord]:
    """Records whose date falls in [start, end], in input order."""
    start, end = _as_date(start), _as_date(end)
    return [record for record in records if start <= record.date <= end]


# =============================================================================
# BALANCES
# =============================================================================

def total_billed(flat_number: str, deliveries: Iterable[Delivery]) -> Decimal:
    return sum((d.amount for d in deliveries if d.flat_number == flat_number), ZERO)


def total_paid(flat_number: str, payments: Iterable[Payment]) -> Decimal:
    return sum((p.amount_received for p in payments if p.flat_number == flat_number), ZERO)


def outstanding(
    flat_number: str,
    deliveries: Iterable[Delivery],
    payments: Iterable[Payment],
) -> Decimal:
    """
    Billed minus paid for one flat number.

    May be negative when the customer has overpaid. Callers decide whether
    to floor it; only payment recording does.
    """
    return total_billed(flat_number, deliveries) - total_paid(flat_number, payments)


def payment_status(outstanding_before: Decimal, amount_received: Decimal) -> PaymentStatus:
    """
    Status of a payment at the moment it is taken.

    - received >= outstanding > 0  -> full
    - 0 < received < outstanding   -> partial
    - anything else (including no debt to apply against) -> pending
    """
    if outstanding_before > 0 and amount_received >= outstanding_before:
        return PaymentStatus.FULL
    if ZERO < amount_received < outstanding_before:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PENDING


def remaining_balance(outstanding_before: Decimal, amount_received: Decimal) -> Decimal:
    """What is left after a payment, floored at zero."""
    return max(outstanding_before - amount_received, ZERO)


def account_standing(balance: Decimal, high_threshold: Optional[Decimal] = None) -> AccountStanding:
    if high_threshold is None:
        high_threshold = Decimal(str(get_settings().ledger.high_balance_threshold))
    if balance < 0:
        return AccountStanding.CREDIT
    if balance == 0:
        return AccountStanding.CLEAR
    if balance > high_threshold:
        return AccountStanding.HIGH
    return AccountStanding.DUE


def customer_account(
    customer: Customer,
    deliveries: Sequence[Delivery],
    payments: Sequence[Payment],
    high_threshold: Optional[Decimal] = None,
) -> CustomerAccount:
    """A customer's running account: bottles, empties, billed, paid, owed."""
    own_deliveries = [d for d in deliveries if d.flat_number == customer.flat_number]
    delivered = sum(d.delivered for d in own_deliveries)
    collected = sum(d.collected for d in own_deliveries)
    billed = sum((d.amount for d in own_deliveries), ZERO)
    paid = total_paid(customer.flat_number, payments)
    balance = billed - paid

    return CustomerAccount(
        customer=customer,
        total_delivered=delivered,
        total_collected=collected,
        pending_empties=delivered - collected,
        total_billed=billed,
        total_paid=paid,
        outstanding=balance,
        standing=account_standing(balance, high_threshold),
    )


# =============================================================================
# DATE-RANGE ROLLUPS
# =============================================================================

def date_range_stats(
    deliveries: Iterable[Delivery],
    payments: Iterable[Payment],
    expenses: Iterable[Expense],
    start: DateLike,
    end: DateLike,
) -> RangeStats:
    """
    Aggregate every collection over the inclusive range [start, end].

    Profit is collected - expenses (cash basis), not revenue - expenses.
    """
    period_deliveries = in_range(deliveries, start, end)
    period_payments = in_range(payments, start, end)
    period_expenses = in_range(expenses, start, end)

    collected = sum((p.amount_received for p in period_payments), ZERO)
    expense_total = sum((e.amount for e in period_expenses), ZERO)

    return RangeStats(
        delivery_count=len(period_deliveries),
        bottles_delivered=sum(d.delivered for d in period_deliveries),
        revenue=sum((d.amount for d in period_deliveries), ZERO),
        collected=collected,
        expense_total=expense_total,
        profit=collected - expense_total,
        empties_collected=sum(d.collected for d in period_deliveries),
    )


def stats_for_range(collections: Collections, date_range: DateRange) -> RangeStats:
    return date_range_stats(
        collections.deliveries,
        collections.payments,
        collections.expenses,
        date_range.start,
        date_range.end,
    )


def dashboard_stats(
    collections: Collections,
    now: Optional[datetime] = None,
    week_start: Optional[int] = None,
) -> DashboardStats:
    """Today/week/month rollups plus all-time totals."""
    total_revenue = sum((d.amount for d in collections.deliveries), ZERO)
    total_collected = sum((p.amount_received for p in collections.payments), ZERO)

    return DashboardStats(
        today=stats_for_range(collections, period_range(Period.TODAY, now)),
        week=stats_for_range(collections, week_range(now, week_start)),
        month=stats_for_range(collections, month_range(now)),
        total_customers=len(collections.customers),
        total_revenue=total_revenue,
        total_collected=total_collected,
        outstanding=total_revenue - total_collected,
        pending_empties=sum(d.delivered - d.collected for d in collections.deliveries),
    )


# =============================================================================
# OVERDUE DETECTION
# =============================================================================

def latest_record(records: Iterable[DatedRecord]) -> Optional[DatedRecord]:
    """
    Most recent record by date.

    Same-day ties go to the later created_at, then the larger id, so the
    answer never depends on list order.
    """
    return max(records, key=lambda r: (r.date, r.created_at, r.id), default=None)


def overdue_dues(
    customers: Iterable[Customer],
    deliveries: Sequence[Delivery],
    payments: Sequence[Payment],
    now: Optional[datetime] = None,
    overdue_after_days: Optional[int] = None,
) -> list[OverdueDue]:
    """
    Customers who owe money, in customer order.

    Customers with outstanding <= 0 are left out entirely. A due is
    overdue when the last delivery is more than `overdue_after_days`
    (default 30) before today.
    """
    if overdue_after_days is None:
        overdue_after_days = get_settings().ledger.overdue_after_days
    current_day = today(now)

    dues = []
    for customer in customers:
        balance = outstanding(customer.flat_number, deliveries, payments)
        if balance <= 0:
            continue

        last_delivery = latest_record(d for d in deliveries if d.flat_number == customer.flat_number)
        last_payment = latest_record(p for p in payments if p.flat_number == customer.flat_number)

        days_pending = 0
        if last_delivery is not None:
            days_pending = max(days_between(last_delivery.date, current_day), 0)

        dues.append(OverdueDue(
            customer=customer,
            outstanding=balance,
            last_delivery_date=last_delivery.date if last_delivery else None,
            last_payment_date=last_payment.date if last_payment else None,
            days_pending=days_pending,
            is_overdue=last_delivery is not None and days_pending > overdue_after_days,
        ))

    return dues
