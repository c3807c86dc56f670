"""Record store and session package."""

from waterledger.store.record_store import COLLECTION_FIELDS, IdGenerator, RecordStore
from waterledger.store.session import NotAuthenticatedError, SessionManager

__all__ = [
    "COLLECTION_FIELDS",
    "IdGenerator",
    "NotAuthenticatedError",
    "RecordStore",
    "SessionManager",
]
