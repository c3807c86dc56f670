"""
Export Snapshots

A single self-describing JSON document holding the four collections, the
business label, the export time and a summary of totals. Building one never
mutates the collections it reads.
"""

import json
import re
from datetime import datetime
from typing import Optional, Union

from pydantic import ValidationError

from waterledger.ledger.dates import today
from waterledger.models.records import Collections, utc_now
from waterledger.reports.reporting import export_summary


_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


class SnapshotFormatError(ValueError):
    """An export file could not be read back."""
    pass


def slugify(label: str) -> str:
    """
    Lowercase, hyphen-separated form of a business name.

    >>> slugify("Aab e Hayat  Water")
    'aab-e-hayat-water'
    """
    slug = _SLUG_SEPARATORS.sub("-", label.strip().lower()).strip("-")
    return slug or "business"


def export_filename(business_label: str, now: Optional[datetime] = None) -> str:
    """`<business-name-slug>-backup-<YYYY-MM-DD>.json`"""
    return f"{slugify(business_label)}-backup-{today(now).isoformat()}.json"


def build_snapshot(
    collections: Collections,
    business_label: str,
    phone: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict:
    """The export document as plain JSON-compatible data."""
    exported_at = now or utc_now()
    data = collections.model_dump(mode="json", by_alias=True)

    return {
        "owner": business_label,
        "phone": phone or "",
        "customers": data["customers"],
        "deliveries": data["deliveries"],
        "payments": data["payments"],
        "expenses": data["expenses"],
        "lastSaved": data["lastSaved"],
        "exportDate": exported_at.isoformat(),
        "summary": export_summary(collections).model_dump(mode="json", by_alias=True),
    }


def export_snapshot(
    collections: Collections,
    business_label: str,
    phone: Optional[str] = None,
    now: Optional[datetime] = None,
) -> bytes:
    """Serialize the snapshot as pretty-printed UTF-8 JSON."""
    document = build_snapshot(collections, business_label, phone=phone, now=now)
    return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")


def parse_snapshot(raw: Union[bytes, str]) -> Collections:
    """
    Read the collections back out of an export file.

    Raises:
        SnapshotFormatError: If the document is not a valid export
    """
    try:
        return Collections.model_validate_json(raw)
    except ValidationError as e:
        raise SnapshotFormatError(f"Not a valid ledger export: {e}") from e
