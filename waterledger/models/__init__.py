"""
Data Models Package

This package contains all Pydantic models used in Water Ledger.
Stored records, derived reports and diagnostic events all conform to these
schemas.
"""

from waterledger.models.records import (
    Collections,
    Customer,
    Delivery,
    Expense,
    ExpenseCategory,
    Payment,
    PaymentMethod,
    PaymentStatus,
    ValidationIssue,
    ValidationResult,
    utc_now,
)
from waterledger.models.reports import (
    AccountStanding,
    CustomerAccount,
    CustomerRevenue,
    DashboardStats,
    DateRange,
    ExportSummary,
    FilteredRecords,
    OverdueDue,
    Period,
    RangeStats,
    RecordQuery,
)
from waterledger.models.session import BusinessSession, derive_data_key
from waterledger.models.diagnostics import (
    DiagnosticEvent,
    DiagnosticEventBuilder,
    DiagnosticEventType,
    DiagnosticSeverity,
)

__all__ = [
    # Records
    "Collections",
    "Customer",
    "Delivery",
    "Expense",
    "ExpenseCategory",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "ValidationIssue",
    "ValidationResult",
    "utc_now",
    # Reports
    "AccountStanding",
    "CustomerAccount",
    "CustomerRevenue",
    "DashboardStats",
    "DateRange",
    "ExportSummary",
    "FilteredRecords",
    "OverdueDue",
    "Period",
    "RangeStats",
    "RecordQuery",
    # Session
    "BusinessSession",
    "derive_data_key",
    # Diagnostics
    "DiagnosticEvent",
    "DiagnosticEventBuilder",
    "DiagnosticEventType",
    "DiagnosticSeverity",
]
