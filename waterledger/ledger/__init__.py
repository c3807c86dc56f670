"""Ledger engine package: date ranges and derived balances."""

from waterledger.ledger.dates import (
    days_between,
    month_range,
    period_range,
    today,
    week_range,
)
from waterledger.ledger.engine import (
    account_standing,
    customer_account,
    dashboard_stats,
    date_range_stats,
    in_range,
    latest_record,
    outstanding,
    overdue_dues,
    payment_status,
    remaining_balance,
    stats_for_range,
    total_billed,
    total_paid,
)

__all__ = [
    "account_standing",
    "customer_account",
    "dashboard_stats",
    "date_range_stats",
    "days_between",
    "in_range",
    "latest_record",
    "month_range",
    "outstanding",
    "overdue_dues",
    "payment_status",
    "period_range",
    "remaining_balance",
    "stats_for_range",
    "today",
    "total_billed",
    "total_paid",
    "week_range",
]
