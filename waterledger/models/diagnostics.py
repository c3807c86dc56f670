"""
Diagnostic Event Models

Every write, recovery and failure in the core produces one structured
event. Events go to the log only; they are never stored alongside the
business data, and there is no edit history.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from waterledger.models.records import utc_now


class DiagnosticEventType(str, Enum):
    """Types of events the core reports."""
    # Session
    SESSION_STARTED = "session_started"
    SESSION_ENDED = "session_ended"
    SESSION_RESTORE_FAILED = "session_restore_failed"

    # Record store
    COLLECTIONS_LOADED = "collections_loaded"
    LOAD_RECOVERED = "load_recovered"
    COLLECTIONS_SAVED = "collections_saved"
    SAVE_FAILED = "save_failed"
    EXPORT_CREATED = "export_created"

    # Business actions
    RECORD_ADDED = "record_added"
    RECORD_DELETED = "record_deleted"
    CUSTOMER_REMOVED = "customer_removed"
    VALIDATION_FAILED = "validation_failed"


class DiagnosticSeverity(str, Enum):
    """Severity level for diagnostic events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DiagnosticEvent(BaseModel):
    """A single diagnostic event."""

    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )
    event_type: DiagnosticEventType
    severity: DiagnosticSeverity = DiagnosticSeverity.INFO

    # What the event is about
    business_key: Optional[str] = None
    record_type: Optional[str] = None
    record_id: Optional[int] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "business_key": self.business_key,
            "record_type": self.record_type,
            "record_id": self.record_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class DiagnosticEventBuilder:
    """
    Helper class to build diagnostic events with common patterns.

    Usage:
        event = DiagnosticEventBuilder.save_failed(key, error)
        event = DiagnosticEventBuilder.record_added("delivery", 17, key)
    """

    @staticmethod
    def session_started(business_key: str, business_name: str) -> DiagnosticEvent:
        return DiagnosticEvent(
            event_type=DiagnosticEventType.SESSION_STARTED,
            business_key=business_key,
            description=f"Session started for {business_name}",
            details={"business_name": business_name},
        )

    @staticmethod
    def session_ended(business_key: str) -> DiagnosticEvent:
        return DiagnosticEvent(
            event_type=DiagnosticEventType.SESSION_ENDED,
            business_key=business_key,
            description="Session ended",
        )

    @staticmethod
    def session_restore_failed(error_message: str) -> DiagnosticEvent:
        return DiagnosticEvent(
            event_type=DiagnosticEventType.SESSION_RESTORE_FAILED,
            severity=DiagnosticSeverity.WARNING,
            description="Stored session unreadable, continuing anonymous",
            error_message=error_message,
        )

    @staticmethod
    def collections_loaded(business_key: str, counts: dict[str, int]) -> DiagnosticEvent:
        return DiagnosticEvent(
            event_type=DiagnosticEventType.COLLECTIONS_LOADED,
            severity=DiagnosticSeverity.DEBUG,
            business_key=business_key,
            description="Collections loaded",
            details=counts,
        )

    @staticmethod
    def load_recovered(business_key: str, error_message: str) -> DiagnosticEvent:
        return DiagnosticEvent(
            event_type=DiagnosticEventType.LOAD_RECOVERED,
            severity=DiagnosticSeverity.WARNING,
            business_key=business_key,
            description="Stored collections unreadable, using empty collections",
            error_message=error_message,
        )

    @staticmethod
    def collections_saved(business_key: str, fields: list[str]) -> DiagnosticEvent:
        return DiagnosticEvent(
            event_type=DiagnosticEventType.COLLECTIONS_SAVED,
            severity=DiagnosticSeverity.DEBUG,
            business_key=business_key,
            description=f"Saved {', '.join(fields) or 'nothing'}",
            details={"fields": fields},
        )

    @staticmethod
    def save_failed(business_key: str, error_message: str) -> DiagnosticEvent:
        return DiagnosticEvent(
            event_type=DiagnosticEventType.SAVE_FAILED,
            severity=DiagnosticSeverity.ERROR,
            business_key=business_key,
            description="Save failed, previous snapshot kept",
            error_message=error_message,
        )

    @staticmethod
    def export_created(business_label: str, size_bytes: int) -> DiagnosticEvent:
        return DiagnosticEvent(
            event_type=DiagnosticEventType.EXPORT_CREATED,
            description=f"Export created for {business_label}",
            details={"size_bytes": size_bytes},
        )

    @staticmethod
    def record_added(
        record_type: str,
        record_id: int,
        business_key: str,
        details: Optional[dict] = None,
    ) -> DiagnosticEvent:
        return DiagnosticEvent(
            event_type=DiagnosticEventType.RECORD_ADDED,
            business_key=business_key,
            record_type=record_type,
            record_id=record_id,
            description=f"{record_type.capitalize()} added",
            details=details or {},
        )

    @staticmethod
    def record_deleted(record_type: str, record_id: int, business_key: str) -> DiagnosticEvent:
        return DiagnosticEvent(
            event_type=DiagnosticEventType.RECORD_DELETED,
            business_key=business_key,
            record_type=record_type,
            record_id=record_id,
            description=f"{record_type.capitalize()} deleted",
        )

    @staticmethod
    def customer_removed(
        record_id: int,
        flat_number: str,
        deliveries_removed: int,
        payments_removed: int,
        business_key: str,
    ) -> DiagnosticEvent:
        return DiagnosticEvent(
            event_type=DiagnosticEventType.CUSTOMER_REMOVED,
            business_key=business_key,
            record_type="customer",
            record_id=record_id,
            description=f"Customer {flat_number} removed with dependents",
            details={
                "flat_number": flat_number,
                "deliveries_removed": deliveries_removed,
                "payments_removed": payments_removed,
            },
        )

    @staticmethod
    def validation_failed(
        record_type: str,
        issues: list[dict],
        business_key: Optional[str] = None,
    ) -> DiagnosticEvent:
        return DiagnosticEvent(
            event_type=DiagnosticEventType.VALIDATION_FAILED,
            severity=DiagnosticSeverity.WARNING,
            business_key=business_key,
            record_type=record_type,
            description=f"{record_type.capitalize()} rejected with {len(issues)} issues",
            details={"issues": issues},
        )
