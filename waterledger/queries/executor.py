"""
Record Query Execution

Runs the search box and period picker over the stored lists. Matching is
done on the collections already in memory; nothing is read from storage.

Rules:
- search_term matches flat number or customer name, case-insensitively
  (customers also match on phone)
- the period filters deliveries, payments and expenses by inclusive date;
  customers are never date-filtered
- input order is preserved
"""

from datetime import datetime
from typing import Optional

from waterledger.ledger.dates import period_range
from waterledger.ledger.engine import in_range
from waterledger.models.records import Collections
from waterledger.models.reports import FilteredRecords, Period, RecordQuery


class QueryExecutor:
    """Executes RecordQuery objects against a Collections snapshot."""

    def __init__(self, week_start: Optional[int] = None):
        self._week_start = week_start

    def execute(
        self,
        collections: Collections,
        query: RecordQuery,
        now: Optional[datetime] = None,
    ) -> FilteredRecords:
        term = (query.search_term or "").strip().lower()
        date_range = period_range(query.period, now, self._week_start)

        customers = list(collections.customers)
        deliveries = list(collections.deliveries)
        payments = list(collections.payments)
        expenses = list(collections.expenses)

        if term:
            customers = [
                c for c in customers
                if term in c.flat_number.lower() or term in c.name.lower() or term in c.phone.lower()
            ]
            deliveries = [
                d for d in deliveries
                if term in d.flat_number.lower() or term in d.customer_name.lower()
            ]
            payments = [
                p for p in payments
                if term in p.flat_number.lower() or term in p.customer_name.lower()
            ]
            expenses = [
                e for e in expenses
                if term in e.description.lower() or term in e.category.value
            ]

        if date_range is not None:
            deliveries = in_range(deliveries, date_range.start, date_range.end)
            payments = in_range(payments, date_range.start, date_range.end)
            expenses = in_range(expenses, date_range.start, date_range.end)

        return FilteredRecords(
            query=query,
            date_range=date_range,
            customers=customers,
            deliveries=deliveries,
            payments=payments,
            expenses=expenses,
        )

    def describe(self, result: FilteredRecords) -> str:
        """Human-readable description of what was searched."""
        parts = ["Showing records"]
        if result.query.search_term:
            parts.append(f"matching '{result.query.search_term}'")
        if result.query.period != Period.ALL and result.date_range is not None:
            parts.append(self._date_range_str(result))
        return " ".join(parts)

    def _date_range_str(self, result: FilteredRecords) -> str:
        start, end = result.date_range.start, result.date_range.end
        if start == end:
            return f"on {start.strftime('%d %b %Y')}"
        if start.month == end.month and start.year == end.year and result.query.period == Period.MONTH:
            return f"in {start.strftime('%B %Y')}"
        return f"from {start.strftime('%d %b')} to {end.strftime('%d %b %Y')}"
