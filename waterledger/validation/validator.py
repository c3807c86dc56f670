"""
Record Validation

DESIGN DECISION: Every attempted write is validated before anything is
built or stored. Issues are collected, not raised one at a time, so the
user sees everything wrong with a form at once.

- ERROR issues block the write (missing field, over-long text,
  non-positive amount, duplicate flat number, unknown customer)
- WARNING issues are reported but do not block (odd phone format,
  future date, overpayment)

IMPORTANT: Validation NEVER silently fixes input.
"""

import re
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from waterledger.models.records import (
    DESCRIPTION_MAX_LENGTH,
    FLAT_NUMBER_MAX_LENGTH,
    NAME_MAX_LENGTH,
    PHONE_MAX_LENGTH,
    Collections,
    ExpenseCategory,
    PaymentMethod,
    ValidationIssue,
    ValidationResult,
)


_PHONE_PATTERN = re.compile(r"^03\d{9}$")
FUTURE_DATE_TOLERANCE_DAYS = 1


class RecordValidationError(ValueError):
    """Raised when an attempted write fails validation. Nothing was written."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(i.message for i in result.issues if i.severity == "error")
        super().__init__(messages or f"Invalid {result.record_type}")


def to_decimal(value: Any) -> Optional[Decimal]:
    """Parse a numeric form value; None if it is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def to_int(value: Any) -> Optional[int]:
    number = to_decimal(value)
    if number is None or number != number.to_integral_value():
        return None
    return int(number)


def _is_member(enum_cls, value: Any) -> bool:
    try:
        enum_cls(value)
    except ValueError:
        return False
    return True


def is_valid_phone(phone: str) -> bool:
    """Local mobile format 03XXXXXXXXX; dashes and spaces are ignored."""
    return bool(_PHONE_PATTERN.match(re.sub(r"[-\s]", "", phone)))


class RecordValidator:
    """
    Validates customer, delivery, payment and expense input against the
    current collections.
    """

    def _error(self, field: str, issue_type: str, message: str, fix: Optional[str] = None) -> ValidationIssue:
        return ValidationIssue(
            field=field,
            issue_type=issue_type,
            message=message,
            severity="error",
            suggested_fix=fix,
        )

    def _warning(self, field: str, issue_type: str, message: str, fix: Optional[str] = None) -> ValidationIssue:
        return ValidationIssue(
            field=field,
            issue_type=issue_type,
            message=message,
            severity="warning",
            suggested_fix=fix,
        )

    def _check_required(self, issues: list, field: str, value: Any, label: str) -> None:
        if value is None or (isinstance(value, str) and not value.strip()):
            issues.append(self._error(field, "missing", f"{label} is required"))

    def _check_max_length(self, issues: list, field: str, value: Optional[str], limit: int, label: str) -> None:
        if value and len(value.strip()) > limit:
            issues.append(self._error(
                field,
                "too_long",
                f"{label} must be at most {limit} characters",
            ))

    def _check_positive(self, issues: list, field: str, value: Any, label: str) -> None:
        number = to_decimal(value)
        if value is None or (isinstance(value, str) and not value.strip()):
            issues.append(self._error(field, "missing", f"{label} is required"))
        elif number is None:
            issues.append(self._error(field, "invalid_value", f"{label} must be a number"))
        elif number <= 0:
            issues.append(self._error(field, "invalid_value", f"{label} must be greater than zero"))

    def _check_date(self, issues: list, day: Optional[date], today: date) -> None:
        if day is None:
            issues.append(self._error("date", "missing", "Date is required"))
        elif day > today + timedelta(days=FUTURE_DATE_TOLERANCE_DAYS):
            issues.append(self._warning(
                "date",
                "future_date",
                f"Date ({day.isoformat()}) is in the future",
                "Please verify the date is correct",
            ))

    def _check_customer_exists(self, issues: list, flat_number: Optional[str], collections: Collections) -> None:
        if flat_number and collections.find_customer(flat_number) is None:
            issues.append(self._error(
                "flat_number",
                "unknown_customer",
                f"No customer with flat number {flat_number}",
                "Add the customer first",
            ))

    def validate_login(self, business_name: Optional[str], phone: Optional[str] = None) -> ValidationResult:
        issues = []
        self._check_required(issues, "business_name", business_name, "Business name")
        self._check_max_length(issues, "business_name", business_name, NAME_MAX_LENGTH, "Business name")
        if phone and not is_valid_phone(phone):
            issues.append(self._warning("phone", "invalid_format", "Phone number should look like 03XX-XXXXXXX"))
        return ValidationResult(record_type="session", issues=issues)

    def validate_customer(
        self,
        collections: Collections,
        flat_number: Optional[str],
        name: Optional[str],
        rate: Any,
        phone: Optional[str] = None,
    ) -> ValidationResult:
        issues = []
        self._check_required(issues, "flat_number", flat_number, "Flat number")
        self._check_required(issues, "name", name, "Customer name")
        self._check_max_length(issues, "flat_number", flat_number, FLAT_NUMBER_MAX_LENGTH, "Flat number")
        self._check_max_length(issues, "name", name, NAME_MAX_LENGTH, "Customer name")
        self._check_max_length(issues, "phone", phone, PHONE_MAX_LENGTH, "Phone number")
        self._check_positive(issues, "rate", rate, "Rate per bottle")

        if flat_number and flat_number.strip():
            wanted = flat_number.strip().lower()
            if any(c.flat_number.lower() == wanted for c in collections.customers):
                issues.append(self._error(
                    "flat_number",
                    "duplicate",
                    f"Flat number {flat_number.strip()} already exists",
                ))

        if phone and not is_valid_phone(phone):
            issues.append(self._warning("phone", "invalid_format", "Phone number should look like 03XX-XXXXXXX"))

        return ValidationResult(record_type="customer", issues=issues)

    def validate_delivery(
        self,
        collections: Collections,
        flat_number: Optional[str],
        day: Optional[date],
        delivered: Any,
        collected: Any,
        today: date,
    ) -> ValidationResult:
        issues = []
        self._check_required(issues, "flat_number", flat_number, "Flat number")
        self._check_date(issues, day, today)
        self._check_customer_exists(issues, flat_number, collections)

        bottles = to_int(delivered)
        if bottles is None:
            issues.append(self._error("delivered", "invalid_value", "Bottles delivered must be a whole number"))
        elif bottles <= 0:
            issues.append(self._error("delivered", "invalid_value", "Bottles delivered must be greater than zero"))

        empties = to_int(collected)
        if empties is None:
            issues.append(self._error("collected", "invalid_value", "Empties collected must be a whole number"))
        elif empties < 0:
            issues.append(self._error("collected", "invalid_value", "Empties collected cannot be negative"))

        return ValidationResult(record_type="delivery", issues=issues)

    def validate_payment(
        self,
        collections: Collections,
        flat_number: Optional[str],
        day: Optional[date],
        amount_received: Any,
        method: Any,
        outstanding_before: Optional[Decimal],
        today: date,
    ) -> ValidationResult:
        issues = []
        self._check_required(issues, "flat_number", flat_number, "Flat number")
        self._check_date(issues, day, today)
        self._check_customer_exists(issues, flat_number, collections)
        self._check_positive(issues, "amount_received", amount_received, "Amount received")

        if not _is_member(PaymentMethod, method):
            issues.append(self._error("payment_method", "invalid_value", f"Unknown payment method: {method}"))

        amount = to_decimal(amount_received)
        if amount is not None and outstanding_before is not None and amount > max(outstanding_before, Decimal("0")):
            issues.append(self._warning(
                "amount_received",
                "overpayment",
                "Amount received is more than the outstanding balance",
                "The extra will show as credit on the account",
            ))

        return ValidationResult(record_type="payment", issues=issues)

    def validate_expense(
        self,
        category: Any,
        amount: Any,
        day: Optional[date],
        description: Optional[str],
        method: Any,
        today: date,
    ) -> ValidationResult:
        issues = []
        if not _is_member(ExpenseCategory, category):
            issues.append(self._error("category", "invalid_value", f"Unknown expense category: {category}"))
        self._check_positive(issues, "amount", amount, "Amount")
        self._check_date(issues, day, today)

        if not _is_member(PaymentMethod, method):
            issues.append(self._error("payment_method", "invalid_value", f"Unknown payment method: {method}"))

        self._check_max_length(issues, "description", description, DESCRIPTION_MAX_LENGTH, "Description")
        if not description or not description.strip():
            issues.append(self._warning("description", "missing", "Expense has no description"))

        return ValidationResult(record_type="expense", issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """One message block for the person filling in the form."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        errors = [issue for issue in result.issues if issue.severity == "error"]
        if errors:
            lines.append("Please fix the following:")
            for issue in errors:
                lines.append(f"  - {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"    ({issue.suggested_fix})")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify:")
            for warning in result.warnings:
                lines.append(f"  - {warning}")

        return "\n".join(lines)
