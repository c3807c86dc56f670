"""
Tests for the business actions

Integration tests over an in-memory store: validate -> build -> save ->
update the in-memory snapshot.
"""

import json
from datetime import date, timedelta
from decimal import Decimal

import pytest

from waterledger.models.records import ExpenseCategory, PaymentMethod, PaymentStatus
from waterledger.models.reports import AccountStanding, Period
from waterledger.orchestrator import RecordNotFoundError, WaterLedger, create_app_components
from waterledger.services.storage import FileKeyValueStorage, InMemoryKeyValueStorage
from waterledger.store import NotAuthenticatedError, SessionManager
from waterledger.validation import RecordValidationError

from conftest import NOW, TODAY


DATA_KEY = "aab_data_aab_e_hayat"


class TestCustomers:

    def test_add_customer(self, ledger, storage):
        """Test a customer is saved and visible in the snapshot."""
        customer, saved = ledger.add_customer("A-101", "Ali", "03001234567", "150")

        assert saved is True
        assert customer.rate == Decimal("150")
        assert ledger.collections.customers == [customer]
        stored = json.loads(storage.get(DATA_KEY))
        assert stored["customers"][0]["flatNumber"] == "A-101"

    def test_default_rate(self, ledger):
        """Test a customer without a rate gets the configured default."""
        customer, _ = ledger.add_customer("A-101", "Ali")
        assert customer.rate == Decimal("120")

    def test_duplicate_flat_is_rejected(self, ledger):
        """Test nothing is written for a duplicate flat number."""
        ledger.add_customer("A-101", "Ali")
        with pytest.raises(RecordValidationError) as exc_info:
            ledger.add_customer("a-101", "Someone")
        assert exc_info.value.result.has_errors
        assert len(ledger.collections.customers) == 1

    @pytest.mark.parametrize("name, phone", [("x" * 201, ""), ("Ali", "0" * 31)])
    def test_over_long_input_is_a_validation_error(self, ledger, name, phone):
        """Test over-long customer text is rejected before any record is built."""
        with pytest.raises(RecordValidationError):
            ledger.add_customer("A1", name, phone=phone, rate=30)
        assert ledger.collections.customers == []

    def test_flat_number_is_trimmed(self, ledger):
        """Test surrounding spaces in a flat number match the stored customer."""
        ledger.add_customer(" A1 ", "Ali", rate=30)
        delivery, _ = ledger.add_delivery(" A1", 2, day=TODAY)
        payment, _ = ledger.add_payment("A1 ", 60, day=TODAY)

        assert delivery.flat_number == "A1"
        assert payment.total_bill == Decimal("60")

    def test_remove_customer_cascades(self, ledger, storage):
        """Test removing a customer drops exactly their deliveries and payments."""
        ali, _ = ledger.add_customer("A-101", "Ali")
        ledger.add_customer("B-202", "Sara")
        ledger.add_delivery("A-101", 2, day=TODAY)
        kept_delivery, _ = ledger.add_delivery("B-202", 1, day=TODAY)
        ledger.add_payment("A-101", 100, day=TODAY)
        kept_payment, _ = ledger.add_payment("B-202", 120, day=TODAY)
        fuel, _ = ledger.add_expense("fuel", 500, "Diesel", day=TODAY)

        assert ledger.remove_customer(ali.id) is True

        collections = ledger.collections
        assert [c.flat_number for c in collections.customers] == ["B-202"]
        assert collections.deliveries == [kept_delivery]
        assert collections.payments == [kept_payment]
        assert collections.expenses == [fuel]
        assert len(json.loads(storage.get(DATA_KEY))["deliveries"]) == 1

    def test_remove_unknown_customer(self, ledger):
        """Test an unknown id raises RecordNotFoundError."""
        with pytest.raises(RecordNotFoundError):
            ledger.remove_customer(12345)


class TestDeliveries:

    def test_amount_uses_current_rate(self, ledger):
        """Test the delivery amount is bottles x rate, frozen at creation."""
        ledger.add_customer("A-101", "Ali", rate=30)
        delivery, saved = ledger.add_delivery("A-101", 10, collected=3, day=TODAY)

        assert saved is True
        assert delivery.amount == Decimal("300")
        assert delivery.customer_name == "Ali"
        assert delivery.collected == 3
        assert delivery.date == TODAY

    def test_unknown_customer_is_rejected(self, ledger):
        """Test deliveries need an existing customer."""
        with pytest.raises(RecordValidationError):
            ledger.add_delivery("Z-9", 1)
        assert ledger.collections.deliveries == []

    def test_delete_delivery(self, ledger):
        """Test deleting a delivery removes only that delivery."""
        ledger.add_customer("A-101", "Ali")
        first, _ = ledger.add_delivery("A-101", 1, day=TODAY)
        second, _ = ledger.add_delivery("A-101", 2, day=TODAY)

        assert ledger.delete_delivery(first.id) is True
        assert ledger.collections.deliveries == [second]

    def test_delete_unknown_delivery(self, ledger):
        """Test an unknown delivery id raises RecordNotFoundError."""
        with pytest.raises(RecordNotFoundError):
            ledger.delete_delivery(1)

    def test_defaults_to_today(self, ledger):
        """Test a delivery without a date is dated today."""
        ledger.add_customer("A-101", "Ali")
        delivery, _ = ledger.add_delivery("A-101", 1)
        assert delivery.date == date.today()


class TestPayments:

    def test_two_payment_scenario(self, ledger):
        """Test rate 30, 10 bottles, then payments of 100 and 200."""
        ledger.add_customer("A", "Customer A", rate=30)
        ledger.add_delivery("A", 10, day=TODAY)
        first, _ = ledger.add_payment("A", 100, day=TODAY)

        assert first.total_bill == Decimal("300")
        assert first.status == PaymentStatus.PARTIAL
        assert first.remaining_balance == Decimal("200")
        assert ledger.outstanding_for("A") == Decimal("200")

        second, saved = ledger.add_payment("A", 200, day=TODAY)

        assert saved is True
        assert second.total_bill == Decimal("200")
        assert second.amount_received == Decimal("200")
        assert second.remaining_balance == Decimal("0")
        assert second.status == PaymentStatus.FULL
        assert ledger.outstanding_for("A") == Decimal("0")

    def test_snapshot_is_not_recomputed(self, ledger):
        """Test deleting history later leaves earlier payment snapshots alone."""
        ledger.add_customer("A", "Customer A", rate=100)
        delivery, _ = ledger.add_delivery("A", 5, day=TODAY)
        payment, _ = ledger.add_payment("A", 200, PaymentMethod.BANK, day=TODAY)

        ledger.delete_delivery(delivery.id)

        stored = ledger.collections.payments[0]
        assert stored == payment
        assert stored.total_bill == Decimal("500")
        assert stored.status == PaymentStatus.PARTIAL
        assert ledger.outstanding_for("A") == Decimal("-200")

    def test_payment_with_no_debt_is_pending(self, ledger):
        """Test a payment with nothing owed is pending and leaves credit."""
        ledger.add_customer("A", "Customer A")
        payment, _ = ledger.add_payment("A", 100, "easypaisa", day=TODAY)

        assert payment.status == PaymentStatus.PENDING
        assert payment.total_bill == Decimal("0")
        assert payment.remaining_balance == Decimal("0")
        assert payment.payment_method == PaymentMethod.EASYPAISA
        assert ledger.accounts()[0].standing == AccountStanding.CREDIT

    def test_invalid_method(self, ledger):
        """Test an unknown payment method is rejected."""
        ledger.add_customer("A", "Customer A")
        with pytest.raises(RecordValidationError):
            ledger.add_payment("A", 100, "cheque")

    def test_delete_payment(self, ledger):
        """Test deleting a payment restores the balance it paid off."""
        ledger.add_customer("A", "Customer A", rate=30)
        ledger.add_delivery("A", 10, day=TODAY)
        payment, _ = ledger.add_payment("A", 100, day=TODAY)

        assert ledger.delete_payment(payment.id) is True
        assert ledger.outstanding_for("A") == Decimal("300")
        with pytest.raises(RecordNotFoundError):
            ledger.delete_payment(payment.id)


class TestExpenses:

    def test_add_and_delete_expense(self, ledger):
        """Test expenses are recorded and removable."""
        fuel, saved = ledger.add_expense(ExpenseCategory.FUEL, "1500.50", "Diesel", day=TODAY)

        assert saved is True
        assert fuel.amount == Decimal("1500.50")
        assert fuel.category == ExpenseCategory.FUEL
        assert ledger.delete_expense(fuel.id) is True
        assert ledger.collections.expenses == []

    def test_over_long_description_rejected(self, ledger):
        """Test an over-long expense description is a validation error."""
        with pytest.raises(RecordValidationError):
            ledger.add_expense(ExpenseCategory.FUEL, 500, description="d" * 501, day=TODAY)
        assert ledger.collections.expenses == []

    def test_negative_amount_rejected(self, ledger):
        """Test an expense amount must be positive."""
        with pytest.raises(RecordValidationError):
            ledger.add_expense("fuel", -10, "Refund?")

    def test_expense_breakdown(self, ledger):
        """Test the breakdown totals spending by category for a period."""
        ledger.add_expense("fuel", 500, "Diesel", day=TODAY)
        ledger.add_expense("fuel", 250, "Petrol", day=TODAY)
        ledger.add_expense("rent", 9000, "Shop", day=TODAY - timedelta(days=60))

        assert ledger.expense_breakdown(Period.MONTH, NOW) == {ExpenseCategory.FUEL: Decimal("750")}
        assert ledger.expense_breakdown(Period.ALL, NOW) == {
            ExpenseCategory.FUEL: Decimal("750"),
            ExpenseCategory.RENT: Decimal("9000"),
        }


class TestFailedSaves:

    def test_failed_save_leaves_snapshot_unchanged(self, ledger, storage):
        """Test a storage failure reports saved=False and changes nothing."""
        ledger.add_customer("A", "Customer A")
        before = ledger.collections
        stored_before = storage.get(DATA_KEY)

        storage.fail_writes = True
        customer, saved = ledger.add_customer("B", "Customer B")

        assert saved is False
        assert customer.flat_number == "B"
        assert ledger.collections is before
        assert storage.get(DATA_KEY) == stored_before

    def test_failed_cascade_keeps_everything(self, ledger, storage):
        """Test a failed customer removal removes nothing."""
        customer, _ = ledger.add_customer("A", "Customer A")
        ledger.add_delivery("A", 1, day=TODAY)

        storage.fail_writes = True

        assert ledger.remove_customer(customer.id) is False
        assert len(ledger.collections.customers) == 1
        assert len(ledger.collections.deliveries) == 1


class TestReads:

    def test_dashboard_and_dues(self, ledger):
        """Test dashboard totals and overdue dues over recorded activity."""
        ledger.add_customer("A", "Customer A", rate=100)
        ledger.add_customer("B", "Customer B", rate=100)
        ledger.add_delivery("A", 3, collected=1, day=TODAY - timedelta(days=40))
        ledger.add_delivery("B", 1, day=TODAY)
        ledger.add_payment("B", 100, day=TODAY)

        stats = ledger.dashboard(NOW)
        assert stats.total_customers == 2
        assert stats.total_revenue == Decimal("400")
        assert stats.total_collected == Decimal("100")
        assert stats.outstanding == Decimal("300")
        assert stats.pending_empties == 3
        assert stats.today.revenue == Decimal("100")

        dues = ledger.dues(NOW)
        assert len(dues) == 1
        assert dues[0].customer.flat_number == "A"
        assert dues[0].days_pending == 40
        assert dues[0].is_overdue is True

    def test_top_customers(self, ledger):
        """Test the top customers report uses delivery revenue."""
        ledger.add_customer("A", "Customer A", rate=100)
        ledger.add_customer("B", "Customer B", rate=100)
        ledger.add_delivery("B", 5, day=TODAY)
        ledger.add_delivery("A", 2, day=TODAY)

        assert [r.customer.flat_number for r in ledger.top_customers(1)] == ["B"]
        assert len(ledger.top_customers()) == 2
        assert ledger.top_customers(0) == []

    def test_search(self, ledger):
        """Test search runs against the current snapshot."""
        ledger.add_customer("A-101", "Ali")
        ledger.add_customer("B-202", "Sara")
        result = ledger.search("sara")
        assert [c.name for c in result.customers] == ["Sara"]

    def test_export(self, ledger):
        """Test export returns the download filename and document."""
        ledger.add_customer("A-101", "Ali")
        filename, payload = ledger.export(NOW)

        assert filename == "aab-e-hayat-backup-2024-03-15.json"
        document = json.loads(payload)
        assert document["owner"] == "Aab e Hayat"
        assert document["phone"] == "0300-1234567"
        assert document["summary"]["totalCustomers"] == 1


class TestAuthentication:

    def test_actions_require_login(self):
        """Test every action fails while anonymous."""
        ledger, session = create_app_components(storage=InMemoryKeyValueStorage())
        assert session.is_authenticated is False

        with pytest.raises(NotAuthenticatedError):
            ledger.add_customer("A", "Customer A")
        with pytest.raises(NotAuthenticatedError):
            ledger.export()

    def test_factory_restores_session(self):
        """Test a second set of components resumes the stored login."""
        storage = InMemoryKeyValueStorage()
        ledger, session = create_app_components(storage=storage)
        session.login("Aab e Hayat")
        ledger.add_customer("A", "Customer A")

        ledger_again, session_again = create_app_components(storage=storage)

        assert session_again.is_authenticated
        assert [c.flat_number for c in ledger_again.collections.customers] == ["A"]

    def test_businesses_are_isolated(self):
        """Test two businesses never see each other's records."""
        storage = InMemoryKeyValueStorage()
        session = SessionManager(storage)
        ledger = WaterLedger(session)

        session.login("First Co")
        ledger.add_customer("A", "Customer A")
        session.logout()
        session.login("Second Co")

        assert ledger.collections.customers == []

    def test_businesses_are_isolated_on_disk(self, tmp_path):
        """Test same-length non-ASCII business names keep separate ledgers in files."""
        ledger, session = create_app_components(storage=FileKeyValueStorage(tmp_path))

        session.login("آب")
        ledger.add_customer("A", "Ali")
        session.logout()
        session.login("پا")

        assert ledger.collections.customers == []
        session.logout()
        session.login("آب")
        assert [c.name for c in ledger.collections.customers] == ["Ali"]
