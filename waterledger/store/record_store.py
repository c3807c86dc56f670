"""
Record Store

Owns the four record collections of each business and moves them to and
from the key/value storage as one JSON blob.

DESIGN DECISION: The store never raises storage problems to its caller.
- A missing or unreadable blob loads as empty collections (the blob
  itself is left untouched)
- A failed write returns the previous snapshot unchanged

Both cases are reported on the diagnostic logger. Saves are
last-write-wins with no concurrency check: a single writer is assumed.
"""

import time
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from waterledger.diagnostics import DiagnosticLogger
from waterledger.models.records import Collections, utc_now
from waterledger.reports.export import export_snapshot
from waterledger.services.storage import KeyValueStorageInterface, StorageError


COLLECTION_FIELDS = ("customers", "deliveries", "payments", "expenses")


class IdGenerator:
    """
    Timestamp-derived record ids.

    Ids are epoch milliseconds, bumped by one when two are requested in the
    same millisecond, so a single generator never repeats itself.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0

    def next_id(self) -> int:
        candidate = int(self._clock() * 1000)
        self._last = max(candidate, self._last + 1)
        return self._last


class RecordStore:
    """Load, merge-save and export business collections."""

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        diagnostics: Optional[DiagnosticLogger] = None,
    ):
        self._storage = storage
        self._diagnostics = diagnostics or DiagnosticLogger()

    def load(self, business_key: str) -> Collections:
        """
        Read a business's collections.

        Returns empty collections if nothing is stored or the stored blob
        cannot be parsed. Never raises for storage or data problems.
        """
        try:
            raw = self._storage.get(business_key)
        except StorageError as e:
            self._diagnostics.log_load_recovered(business_key, str(e))
            return Collections.empty()

        if raw is None:
            return Collections.empty()

        try:
            collections = Collections.model_validate_json(raw)
        except ValidationError as e:
            self._diagnostics.log_load_recovered(business_key, str(e))
            return Collections.empty()

        self._diagnostics.log_collections_loaded(business_key, {
            "customers": len(collections.customers),
            "deliveries": len(collections.deliveries),
            "payments": len(collections.payments),
            "expenses": len(collections.expenses),
        })
        return collections

    def save(
        self,
        business_key: str,
        partial_update: Mapping[str, Any],
        current: Collections,
    ) -> Collections:
        """
        Merge `partial_update` over `current`, stamp last_saved and persist.

        Args:
            business_key: Storage key of the business
            partial_update: Replacement lists keyed by collection name
                            ("customers", "deliveries", "payments", "expenses")
            current: The snapshot the update was computed from

        Returns:
            The merged collections, or `current` itself if the write failed.
            Callers can test `result is current` to detect the failure.

        Raises:
            ValueError: If the update names something that is not a collection
        """
        unknown = set(partial_update) - set(COLLECTION_FIELDS)
        if unknown:
            raise ValueError(f"Not a collection: {', '.join(sorted(unknown))}")

        update = {name: list(records) for name, records in partial_update.items()}
        update["last_saved"] = utc_now()
        merged = current.model_copy(update=update)

        try:
            self._storage.set(business_key, merged.to_json())
        except (StorageError, PydanticSerializationError) as e:
            self._diagnostics.log_save_failed(business_key, str(e))
            return current

        self._diagnostics.log_collections_saved(business_key, sorted(partial_update))
        return merged

    def export(
        self,
        collections: Collections,
        business_label: str,
        phone: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> bytes:
        """Self-describing JSON snapshot for download. Pure transform."""
        payload = export_snapshot(collections, business_label, phone=phone, now=now)
        self._diagnostics.log_export_created(business_label, len(payload))
        return payload
