"""Ranked and aggregate views over the collections."""

from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Optional

from waterledger.config import get_settings
from waterledger.ledger.engine import DateLike, ZERO, in_range, total_billed
from waterledger.models.records import Collections, Customer, Delivery, Expense, ExpenseCategory
from waterledger.models.reports import CustomerRevenue, ExportSummary


def top_customers_by_revenue(
    customers: Sequence[Customer],
    deliveries: Sequence[Delivery],
    n: Optional[int] = None,
) -> list[CustomerRevenue]:
    """
    Customers ranked by total delivery amount, highest first.

    Equal revenue keeps collection order (sorted() is stable).
    """
    if n is None:
        n = get_settings().ledger.top_customers_limit
    revenues = [(customer, total_billed(customer.flat_number, deliveries)) for customer in customers]
    ranked = sorted(revenues, key=lambda pair: pair[1], reverse=True)[:max(n, 0)]
    return [
        CustomerRevenue(rank=position, customer=customer, revenue=revenue)
        for position, (customer, revenue) in enumerate(ranked, start=1)
    ]


def category_totals(
    expenses: Iterable[Expense],
    categories: Optional[Iterable[ExpenseCategory]] = None,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> dict[ExpenseCategory, Decimal]:
    """
    Expense total per category over [start, end].

    Categories with a zero total are omitted. Without a range every
    expense counts; without categories every category is considered.
    """
    wanted = list(categories) if categories is not None else list(ExpenseCategory)
    if start is not None and end is not None:
        expenses = in_range(expenses, start, end)

    totals = {category: ZERO for category in wanted}
    for expense in expenses:
        if expense.category in totals:
            totals[expense.category] += expense.amount

    return {category: amount for category, amount in totals.items() if amount != 0}


def collection_rate(total_collected: Decimal, total_revenue: Decimal) -> float:
    """Collected as a percentage of revenue; 0 when there is no revenue."""
    if not total_revenue:
        return 0.0
    return float(Decimal(total_collected) / Decimal(total_revenue) * 100)


def export_summary(collections: Collections) -> ExportSummary:
    """Counts and sums written into every export."""
    return ExportSummary(
        total_customers=len(collections.customers),
        total_deliveries=len(collections.deliveries),
        total_payments=len(collections.payments),
        total_expenses=len(collections.expenses),
        total_revenue=sum((d.amount for d in collections.deliveries), ZERO),
        total_paid=sum((p.amount_received for p in collections.payments), ZERO),
        total_expense_amount=sum((e.amount for e in collections.expenses), ZERO),
    )
