"""
Shared fixtures for Water Ledger tests.

Every test runs against an in-memory storage backend and, where dates
matter, a pinned "now" of Friday 15 March 2024.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from waterledger.models.records import (
    Customer,
    Delivery,
    Expense,
    ExpenseCategory,
    Payment,
    PaymentStatus,
)
from waterledger.orchestrator import create_app_components
from waterledger.services.storage import InMemoryKeyValueStorage, StorageWriteError


NOW = datetime(2024, 3, 15, 10, 0, 0)
TODAY = NOW.date()


class FlakyStorage(InMemoryKeyValueStorage):
    """In-memory storage whose writes can be switched off."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_writes = False

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageWriteError("disk full")
        super().set(key, value)


def customer(id: int, flat_number: str, name: str = "", rate: str = "120") -> Customer:
    return Customer(id=id, flat_number=flat_number, name=name or f"Customer {flat_number}", rate=Decimal(rate))


def delivery(id: int, flat_number: str, day: date, delivered: int, amount: str, collected: int = 0) -> Delivery:
    return Delivery(
        id=id,
        date=day,
        flat_number=flat_number,
        delivered=delivered,
        collected=collected,
        amount=Decimal(amount),
    )


def payment(id: int, flat_number: str, day: date, amount: str) -> Payment:
    return Payment(
        id=id,
        date=day,
        flat_number=flat_number,
        total_bill=Decimal("0"),
        amount_received=Decimal(amount),
        status=PaymentStatus.PENDING,
    )


def expense(id: int, category: ExpenseCategory, day: date, amount: str, description: str = "") -> Expense:
    return Expense(id=id, date=day, category=category, amount=Decimal(amount), description=description)


@pytest.fixture
def storage():
    return FlakyStorage()


@pytest.fixture
def app(storage):
    """(ledger, session) logged in as a fresh business."""
    ledger, session = create_app_components(storage=storage)
    session.login("Aab e Hayat", "0300-1234567")
    return ledger, session


@pytest.fixture
def ledger(app):
    return app[0]


@pytest.fixture
def session(app):
    return app[1]
