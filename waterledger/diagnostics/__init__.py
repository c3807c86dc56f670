"""Diagnostic logging package."""

from waterledger.diagnostics.logger import DiagnosticLogger, configure_logging

__all__ = ["DiagnosticLogger", "configure_logging"]
