"""Reporting and export package."""

from waterledger.reports.export import (
    SnapshotFormatError,
    build_snapshot,
    export_filename,
    export_snapshot,
    parse_snapshot,
    slugify,
)
from waterledger.reports.reporting import (
    category_totals,
    collection_rate,
    export_summary,
    top_customers_by_revenue,
)

__all__ = [
    "SnapshotFormatError",
    "build_snapshot",
    "category_totals",
    "collection_rate",
    "export_filename",
    "export_snapshot",
    "export_summary",
    "parse_snapshot",
    "slugify",
    "top_customers_by_revenue",
]
