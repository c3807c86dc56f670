"""
Core Record Models for Water Ledger

These models define the strict schemas for every record a business keeps:
customers, deliveries, payments and expenses, plus the collection set that
is stored as one blob per business.

They are designed to:
1. Enforce type safety at runtime
2. Round-trip through JSON without field loss (camelCase on the wire)
3. Stay immutable once created; changes are full replacements

DESIGN DECISION: Deliveries and payments carry snapshots (customer name,
amount, balance, status) captured when they were recorded. Nothing here
recomputes them from current data.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


# Field length limits, shared with the validator.
FLAT_NUMBER_MAX_LENGTH = 50
NAME_MAX_LENGTH = 200
PHONE_MAX_LENGTH = 30
DESCRIPTION_MAX_LENGTH = 500


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class PaymentMethod(str, Enum):
    """How money changed hands."""
    CASH = "cash"
    BANK = "bank"
    ONLINE = "online"
    JAZZCASH = "jazzcash"
    EASYPAISA = "easypaisa"
    OTHER = "other"


class PaymentStatus(str, Enum):
    """
    Status of a payment at the moment it was recorded.

    CRITICAL: Evaluated once at creation and never recomputed, even if later
    payments or deletions change the customer's history.
    """
    PENDING = "pending"
    PARTIAL = "partial"
    FULL = "full"


class ExpenseCategory(str, Enum):
    """Business cost categories."""
    SUPPLIES = "supplies"
    FUEL = "fuel"
    MAINTENANCE = "maintenance"
    SALARIES = "salaries"
    RENT = "rent"
    UTILITIES = "utilities"
    OTHER = "other"


# =============================================================================
# RECORD MODELS
# =============================================================================

class LedgerRecord(BaseModel):
    """
    Shared configuration for every stored record.

    Python attributes are snake_case; the stored JSON uses camelCase
    (flatNumber, amountReceived, createdAt) and either form is accepted
    on input.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
    )

    id: int = Field(
        ...,
        description="Timestamp-derived identifier, unique within a business"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the record was created"
    )


class Customer(LedgerRecord):
    """
    A household on the delivery route, identified by its flat number.

    Flat numbers are unique case-insensitively within one business; that
    rule is enforced by the validator, not the model.
    """

    flat_number: str = Field(
        ...,
        min_length=1,
        max_length=FLAT_NUMBER_MAX_LENGTH,
        description="Flat/unit number"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=NAME_MAX_LENGTH,
        description="Display name"
    )
    phone: str = Field(
        default="",
        max_length=PHONE_MAX_LENGTH,
    )
    rate: Decimal = Field(
        ...,
        gt=0,
        description="Price per bottle"
    )


class Delivery(LedgerRecord):
    """
    Bottles dropped off at a flat on a given day.

    `amount` is delivered x rate using the rate in effect at creation.
    Later rate changes never touch it.
    """

    date: date
    flat_number: str = Field(..., min_length=1)
    customer_name: str = Field(
        default="",
        description="Customer name captured at creation"
    )
    delivered: int = Field(ge=0)
    collected: int = Field(
        default=0,
        ge=0,
        description="Empty bottles picked up"
    )
    notes: str = ""
    amount: Decimal = Field(ge=0)


class Payment(LedgerRecord):
    """
    Money received from a customer.

    A payment is an append-only event: total_bill, remaining_balance and
    status describe the ledger as it stood when the payment was taken.
    """

    date: date
    flat_number: str = Field(..., min_length=1)
    customer_name: str = ""
    total_bill: Decimal = Field(
        ...,
        description="Outstanding before this payment (may be negative)"
    )
    amount_received: Decimal = Field(ge=0)
    remaining_balance: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="total_bill - amount_received, floored at zero"
    )
    payment_method: PaymentMethod = PaymentMethod.CASH
    status: PaymentStatus = PaymentStatus.PENDING
    notes: str = ""


class Expense(LedgerRecord):
    """A business cost. Not tied to any customer."""

    date: date
    category: ExpenseCategory
    description: str = Field(default="", max_length=DESCRIPTION_MAX_LENGTH)
    amount: Decimal = Field(ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: str = ""


class Collections(BaseModel):
    """
    Everything stored for one business.

    This is the unit the record store reads and writes in full.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    customers: list[Customer] = Field(default_factory=list)
    deliveries: list[Delivery] = Field(default_factory=list)
    payments: list[Payment] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    last_saved: Optional[datetime] = None

    @field_validator('last_saved', mode='before')
    @classmethod
    def blank_means_never_saved(cls, v):
        """Older blobs store an empty string before the first save."""
        if v == "":
            return None
        return v

    @classmethod
    def empty(cls) -> "Collections":
        return cls()

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def find_customer(self, flat_number: str) -> Optional[Customer]:
        """Exact flat-number lookup, as used when recording activity."""
        for customer in self.customers:
            if customer.flat_number == flat_number:
                return customer
        return None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'duplicate', 'invalid_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Result of validating one attempted write.

    Errors block the write; warnings are only shown.
    """

    record_type: str = Field(
        ...,
        description="Kind of record being validated (customer, delivery, ...)"
    )
    validated_at: datetime = Field(
        default_factory=utc_now
    )
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
