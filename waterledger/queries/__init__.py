"""Record query package."""

from waterledger.queries.executor import QueryExecutor

__all__ = ["QueryExecutor"]
