"""
Derived Report Models

Shapes returned by the ledger engine, the reports and the record queries.
None of these are stored; they are rebuilt from the collections on every
read.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from waterledger.models.records import (
    Customer,
    Delivery,
    Expense,
    Payment,
    utc_now,
)


class AccountStanding(str, Enum):
    """How a customer's balance reads on the accounts page."""
    CREDIT = "credit"  # overpaid
    CLEAR = "clear"
    DUE = "due"
    HIGH = "high"


class Period(str, Enum):
    """Named reporting windows."""
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class ReportModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class DateRange(ReportModel):
    """Inclusive calendar-day range."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


class RangeStats(ReportModel):
    """Aggregates for one date range. Profit is cash basis."""

    delivery_count: int = 0
    bottles_delivered: int = 0
    revenue: Decimal = Decimal("0")
    collected: Decimal = Decimal("0")
    expense_total: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")
    empties_collected: int = 0


class OverdueDue(ReportModel):
    """A customer who still owes money."""

    customer: Customer
    outstanding: Decimal
    last_delivery_date: Optional[date] = None
    last_payment_date: Optional[date] = None
    days_pending: int = Field(default=0, ge=0)
    is_overdue: bool = False


class CustomerAccount(ReportModel):
    """A customer's running account (khata)."""

    customer: Customer
    total_delivered: int = 0
    total_collected: int = 0
    pending_empties: int = 0
    total_billed: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    outstanding: Decimal = Decimal("0")
    standing: AccountStanding = AccountStanding.CLEAR


class DashboardStats(ReportModel):
    """Headline figures for the dashboard."""

    today: RangeStats
    week: RangeStats
    month: RangeStats
    total_customers: int = 0
    total_revenue: Decimal = Decimal("0")
    total_collected: Decimal = Decimal("0")
    outstanding: Decimal = Decimal("0")
    pending_empties: int = 0


class CustomerRevenue(ReportModel):
    """One row of the top-customers report."""

    rank: int = Field(ge=1)
    customer: Customer
    revenue: Decimal


class ExportSummary(ReportModel):
    """Totals precomputed into every export file."""

    total_customers: int = 0
    total_deliveries: int = 0
    total_payments: int = 0
    total_expenses: int = 0
    total_revenue: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    total_expense_amount: Decimal = Decimal("0")


# =============================================================================
# QUERY MODELS
# =============================================================================

class RecordQuery(ReportModel):
    """
    Search and period filter applied to the record lists.

    search_term matches flat number or customer name (and phone for
    customers), case-insensitively.
    """

    search_term: Optional[str] = Field(default=None, max_length=100)
    period: Period = Period.ALL


class FilteredRecords(ReportModel):
    """Result of running a RecordQuery."""

    query: RecordQuery
    executed_at: datetime = Field(default_factory=utc_now)
    date_range: Optional[DateRange] = None
    customers: list[Customer] = Field(default_factory=list)
    deliveries: list[Delivery] = Field(default_factory=list)
    payments: list[Payment] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)

    @property
    def result_count(self) -> int:
        return (
            len(self.customers)
            + len(self.deliveries)
            + len(self.payments)
            + len(self.expenses)
        )

    @property
    def data_found(self) -> bool:
        return self.result_count > 0
