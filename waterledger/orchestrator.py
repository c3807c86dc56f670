"""
Main Orchestrator for Water Ledger

This module ties the components together and defines the business actions
behind every form and button:
1. Record writes (validate -> build record with frozen snapshots -> save)
2. Reads (derive balances and reports from the current snapshot)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is written unless validation passes
- Snapshot fields (delivery amount, payment balance and status) are
  computed here once, at creation, and never again
- A failed save leaves the in-memory snapshot exactly as it was
- Removing a customer and their deliveries and payments is ONE save
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Union

from waterledger.config import get_settings
from waterledger.diagnostics import DiagnosticLogger
from waterledger.ledger import dates
from waterledger.ledger.engine import (
    customer_account,
    dashboard_stats,
    outstanding,
    overdue_dues,
    payment_status,
    remaining_balance,
)
from waterledger.models.records import (
    Collections,
    Customer,
    Delivery,
    Expense,
    ExpenseCategory,
    Payment,
    PaymentMethod,
    ValidationResult,
)
from waterledger.models.reports import (
    CustomerAccount,
    CustomerRevenue,
    DashboardStats,
    FilteredRecords,
    OverdueDue,
    Period,
    RecordQuery,
)
from waterledger.queries import QueryExecutor
from waterledger.reports import category_totals, export_filename, top_customers_by_revenue
from waterledger.services.storage import (
    FileKeyValueStorage,
    InMemoryKeyValueStorage,
    KeyValueStorageInterface,
)
from waterledger.store import IdGenerator, RecordStore, SessionManager
from waterledger.validation import RecordValidationError, RecordValidator, to_decimal, to_int


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


class RecordNotFoundError(LookupError):
    """No record with the given id exists for the current business."""
    pass


class WaterLedger:
    """
    Business actions for the logged-in business.

    Every mutating action returns `(record, saved)`; `saved` is False when
    the store could not persist the change, in which case nothing in memory
    changed either. Deletes return just `saved`.
    """

    def __init__(
        self,
        session: SessionManager,
        validator: Optional[RecordValidator] = None,
        id_generator: Optional[IdGenerator] = None,
        diagnostics: Optional[DiagnosticLogger] = None,
    ):
        self._session = session
        self._store = session.record_store
        self._validator = validator or RecordValidator()
        self._ids = id_generator or IdGenerator()
        self._diagnostics = diagnostics or DiagnosticLogger()
        self._settings = get_settings().ledger
        self._query_executor = QueryExecutor(self._settings.week_start)

    @property
    def session(self) -> SessionManager:
        return self._session

    @property
    def collections(self) -> Collections:
        """The logged-in business's current snapshot."""
        self._session.require()
        return self._session.collections

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _business_key(self) -> str:
        return self._session.require().data_key

    def _reject_if_invalid(self, result: ValidationResult) -> None:
        if result.has_errors:
            self._diagnostics.log_validation_failed(
                result.record_type,
                [issue.model_dump() for issue in result.issues],
                self._business_key(),
            )
            raise RecordValidationError(result)

    def _persist(self, update: dict[str, list]) -> bool:
        """Save an update for the current business; True if it was written."""
        key = self._business_key()
        current = self._session.collections
        merged = self._store.save(key, update, current)
        if merged is current:
            return False
        self._session.replace_collections(merged)
        return True

    # -------------------------------------------------------------------------
    # Customers
    # -------------------------------------------------------------------------

    def add_customer(
        self,
        flat_number: str,
        name: str,
        phone: str = "",
        rate: Any = None,
    ) -> tuple[Customer, bool]:
        """
        Add a customer.

        Raises:
            RecordValidationError: Missing fields, bad rate, or a flat number
                                   that already exists (case-insensitive)
        """
        key = self._business_key()
        flat_number = _strip(flat_number)
        if rate is None:
            rate = Decimal(str(self._settings.default_rate))

        result = self._validator.validate_customer(self.collections, flat_number, name, rate, phone)
        self._reject_if_invalid(result)

        customer = Customer(
            id=self._ids.next_id(),
            flat_number=flat_number,
            name=name,
            phone=phone or "",
            rate=to_decimal(rate),
        )
        saved = self._persist({"customers": [*self.collections.customers, customer]})
        if saved:
            self._diagnostics.log_record_added("customer", customer.id, key, {"flat_number": customer.flat_number})
        return customer, saved

    def remove_customer(self, customer_id: int) -> bool:
        """
        Delete a customer together with every delivery and payment that
        carries their flat number, in a single save.

        Raises:
            RecordNotFoundError: If no customer has this id
        """
        key = self._business_key()
        collections = self.collections
        customer = next((c for c in collections.customers if c.id == customer_id), None)
        if customer is None:
            raise RecordNotFoundError(f"Customer {customer_id} not found")

        deliveries = [d for d in collections.deliveries if d.flat_number != customer.flat_number]
        payments = [p for p in collections.payments if p.flat_number != customer.flat_number]

        saved = self._persist({
            "customers": [c for c in collections.customers if c.id != customer_id],
            "deliveries": deliveries,
            "payments": payments,
        })
        if saved:
            self._diagnostics.log_customer_removed(
                record_id=customer_id,
                flat_number=customer.flat_number,
                deliveries_removed=len(collections.deliveries) - len(deliveries),
                payments_removed=len(collections.payments) - len(payments),
                business_key=key,
            )
        return saved

    # -------------------------------------------------------------------------
    # Deliveries
    # -------------------------------------------------------------------------

    def add_delivery(
        self,
        flat_number: str,
        delivered: Any,
        collected: Any = 0,
        notes: str = "",
        day: Optional[date] = None,
    ) -> tuple[Delivery, bool]:
        """
        Record bottles delivered to a flat.

        The amount is delivered x the customer's current rate and is frozen
        on the delivery.
        """
        key = self._business_key()
        flat_number = _strip(flat_number)
        day = day or dates.today()

        result = self._validator.validate_delivery(
            self.collections, flat_number, day, delivered, collected, dates.today(),
        )
        self._reject_if_invalid(result)

        customer = self.collections.find_customer(flat_number)
        bottles = to_int(delivered)
        delivery = Delivery(
            id=self._ids.next_id(),
            date=day,
            flat_number=customer.flat_number,
            customer_name=customer.name,
            delivered=bottles,
            collected=to_int(collected),
            notes=notes or "",
            amount=customer.rate * bottles,
        )
        saved = self._persist({"deliveries": [*self.collections.deliveries, delivery]})
        if saved:
            self._diagnostics.log_record_added("delivery", delivery.id, key, {"amount": str(delivery.amount)})
        return delivery, saved

    def delete_delivery(self, delivery_id: int) -> bool:
        key = self._business_key()
        deliveries = self.collections.deliveries
        if not any(d.id == delivery_id for d in deliveries):
            raise RecordNotFoundError(f"Delivery {delivery_id} not found")

        saved = self._persist({"deliveries": [d for d in deliveries if d.id != delivery_id]})
        if saved:
            self._diagnostics.log_record_deleted("delivery", delivery_id, key)
        return saved

    # -------------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------------

    def add_payment(
        self,
        flat_number: str,
        amount_received: Any,
        method: Union[PaymentMethod, str] = PaymentMethod.CASH,
        notes: str = "",
        day: Optional[date] = None,
    ) -> tuple[Payment, bool]:
        """
        Record money received.

        The payment captures the outstanding balance before it (total_bill),
        what is left after it (floored at zero) and its status. None of these
        are ever recomputed.
        """
        key = self._business_key()
        flat_number = _strip(flat_number)
        day = day or dates.today()
        collections = self.collections

        balance = None
        if flat_number:
            balance = outstanding(flat_number, collections.deliveries, collections.payments)

        result = self._validator.validate_payment(
            collections, flat_number, day, amount_received, method, balance, dates.today(),
        )
        self._reject_if_invalid(result)

        customer = collections.find_customer(flat_number)
        amount = to_decimal(amount_received)
        payment = Payment(
            id=self._ids.next_id(),
            date=day,
            flat_number=customer.flat_number,
            customer_name=customer.name,
            total_bill=balance,
            amount_received=amount,
            remaining_balance=remaining_balance(balance, amount),
            payment_method=PaymentMethod(method),
            status=payment_status(balance, amount),
            notes=notes or "",
        )
        saved = self._persist({"payments": [*collections.payments, payment]})
        if saved:
            self._diagnostics.log_record_added("payment", payment.id, key, {
                "amount_received": str(payment.amount_received),
                "status": payment.status.value,
            })
        return payment, saved

    def delete_payment(self, payment_id: int) -> bool:
        key = self._business_key()
        payments = self.collections.payments
        if not any(p.id == payment_id for p in payments):
            raise RecordNotFoundError(f"Payment {payment_id} not found")

        saved = self._persist({"payments": [p for p in payments if p.id != payment_id]})
        if saved:
            self._diagnostics.log_record_deleted("payment", payment_id, key)
        return saved

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def add_expense(
        self,
        category: Union[ExpenseCategory, str],
        amount: Any,
        description: str = "",
        method: Union[PaymentMethod, str] = PaymentMethod.CASH,
        notes: str = "",
        day: Optional[date] = None,
    ) -> tuple[Expense, bool]:
        key = self._business_key()
        day = day or dates.today()

        result = self._validator.validate_expense(category, amount, day, description, method, dates.today())
        self._reject_if_invalid(result)

        expense = Expense(
            id=self._ids.next_id(),
            date=day,
            category=ExpenseCategory(category),
            description=description or "",
            amount=to_decimal(amount),
            payment_method=PaymentMethod(method),
            notes=notes or "",
        )
        saved = self._persist({"expenses": [*self.collections.expenses, expense]})
        if saved:
            self._diagnostics.log_record_added("expense", expense.id, key, {"amount": str(expense.amount)})
        return expense, saved

    def delete_expense(self, expense_id: int) -> bool:
        key = self._business_key()
        expenses = self.collections.expenses
        if not any(e.id == expense_id for e in expenses):
            raise RecordNotFoundError(f"Expense {expense_id} not found")

        saved = self._persist({"expenses": [e for e in expenses if e.id != expense_id]})
        if saved:
            self._diagnostics.log_record_deleted("expense", expense_id, key)
        return saved

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def outstanding_for(self, flat_number: str) -> Decimal:
        collections = self.collections
        return outstanding(flat_number, collections.deliveries, collections.payments)

    def accounts(self) -> list[CustomerAccount]:
        collections = self.collections
        threshold = Decimal(str(self._settings.high_balance_threshold))
        return [
            customer_account(c, collections.deliveries, collections.payments, threshold)
            for c in collections.customers
        ]

    def dashboard(self, now: Optional[datetime] = None) -> DashboardStats:
        return dashboard_stats(self.collections, now, self._settings.week_start)

    def dues(self, now: Optional[datetime] = None) -> list[OverdueDue]:
        collections = self.collections
        return overdue_dues(
            collections.customers,
            collections.deliveries,
            collections.payments,
            now=now,
            overdue_after_days=self._settings.overdue_after_days,
        )

    def top_customers(self, n: Optional[int] = None) -> list[CustomerRevenue]:
        collections = self.collections
        return top_customers_by_revenue(
            collections.customers,
            collections.deliveries,
            n if n is not None else self._settings.top_customers_limit,
        )

    def expense_breakdown(
        self,
        period: Union[Period, str] = Period.MONTH,
        now: Optional[datetime] = None,
    ) -> dict[ExpenseCategory, Decimal]:
        date_range = dates.period_range(period, now, self._settings.week_start)
        if date_range is None:
            return category_totals(self.collections.expenses)
        return category_totals(self.collections.expenses, None, date_range.start, date_range.end)

    def search(
        self,
        search_term: Optional[str] = None,
        period: Union[Period, str] = Period.ALL,
        now: Optional[datetime] = None,
    ) -> FilteredRecords:
        query = RecordQuery(search_term=search_term, period=Period(period))
        return self._query_executor.execute(self.collections, query, now)

    def export(self, now: Optional[datetime] = None) -> tuple[str, bytes]:
        """(filename, JSON bytes) for a download of the whole ledger."""
        session = self._session.require()
        payload = self._store.export(
            self.collections,
            session.business_name,
            phone=session.phone,
            now=now,
        )
        return export_filename(session.business_name, now), payload


def create_app_components(
    storage: Optional[KeyValueStorageInterface] = None,
    persistent: bool = True,
) -> tuple[WaterLedger, SessionManager]:
    """
    Factory function to create all application components.

    Args:
        storage: Storage backend to use. Defaults to a file-backed store in
                 the configured data directory, or an in-memory store when
                 `persistent` is False.
        persistent: Whether the default backend should write to disk.

    Returns:
        (ledger, session_manager). The session is restored from storage
        when a previous login was persisted.
    """
    diagnostics = DiagnosticLogger()

    if storage is None:
        if persistent:
            storage = FileKeyValueStorage()
        else:
            storage = InMemoryKeyValueStorage(quota_bytes=get_settings().storage.quota_bytes)

    record_store = RecordStore(storage, diagnostics)
    session = SessionManager(storage, record_store, diagnostics)
    session.restore()

    ledger = WaterLedger(session, diagnostics=diagnostics)
    return ledger, session
