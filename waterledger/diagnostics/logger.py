"""
Diagnostic Logger

DESIGN DECISION: The core never raises storage write failures to its
callers. Those failures, silent load recoveries and every successful write
are reported here instead, as structured log lines.

The diagnostic logger:
- Is synchronous, like the rest of the core
- Only logs; events are never persisted with business data
"""

import logging
from typing import Optional

import structlog

from waterledger.models.diagnostics import (
    DiagnosticEvent,
    DiagnosticEventBuilder,
    DiagnosticSeverity,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through the stdlib root logger at `level`."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))


class DiagnosticLogger:
    """
    Central diagnostic logging service.

    Each helper builds a DiagnosticEvent and logs it at the event's
    severity under the "waterledger" logger name.
    """

    def __init__(self, logger_name: str = "waterledger"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: DiagnosticEvent) -> None:
        """Log one event at its severity."""
        log_dict = event.to_log_dict()

        if event.severity == DiagnosticSeverity.ERROR:
            self._logger.error("diagnostic_event", **log_dict)
        elif event.severity == DiagnosticSeverity.WARNING:
            self._logger.warning("diagnostic_event", **log_dict)
        elif event.severity == DiagnosticSeverity.DEBUG:
            self._logger.debug("diagnostic_event", **log_dict)
        else:
            self._logger.info("diagnostic_event", **log_dict)

    def log_session_started(self, business_key: str, business_name: str) -> None:
        self.log(DiagnosticEventBuilder.session_started(business_key, business_name))

    def log_session_ended(self, business_key: str) -> None:
        self.log(DiagnosticEventBuilder.session_ended(business_key))

    def log_session_restore_failed(self, error_message: str) -> None:
        self.log(DiagnosticEventBuilder.session_restore_failed(error_message))

    def log_collections_loaded(self, business_key: str, counts: dict[str, int]) -> None:
        self.log(DiagnosticEventBuilder.collections_loaded(business_key, counts))

    def log_load_recovered(self, business_key: str, error_message: str) -> None:
        """Log a stored blob that could not be read."""
        self.log(DiagnosticEventBuilder.load_recovered(business_key, error_message))

    def log_collections_saved(self, business_key: str, fields: list[str]) -> None:
        self.log(DiagnosticEventBuilder.collections_saved(business_key, fields))

    def log_save_failed(self, business_key: str, error_message: str) -> None:
        """Log a write that was discarded."""
        self.log(DiagnosticEventBuilder.save_failed(business_key, error_message))

    def log_export_created(self, business_label: str, size_bytes: int) -> None:
        self.log(DiagnosticEventBuilder.export_created(business_label, size_bytes))

    def log_record_added(
        self,
        record_type: str,
        record_id: int,
        business_key: str,
        details: Optional[dict] = None,
    ) -> None:
        self.log(DiagnosticEventBuilder.record_added(record_type, record_id, business_key, details))

    def log_record_deleted(self, record_type: str, record_id: int, business_key: str) -> None:
        self.log(DiagnosticEventBuilder.record_deleted(record_type, record_id, business_key))

    def log_customer_removed(
        self,
        record_id: int,
        flat_number: str,
        deliveries_removed: int,
        payments_removed: int,
        business_key: str,
    ) -> None:
        self.log(DiagnosticEventBuilder.customer_removed(
            record_id=record_id,
            flat_number=flat_number,
            deliveries_removed=deliveries_removed,
            payments_removed=payments_removed,
            business_key=business_key,
        ))

    def log_validation_failed(
        self,
        record_type: str,
        issues: list[dict],
        business_key: Optional[str] = None,
    ) -> None:
        self.log(DiagnosticEventBuilder.validation_failed(record_type, issues, business_key))
