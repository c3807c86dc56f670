"""
Water Ledger - Source Package

Bookkeeping for a small water-bottle delivery business: customers by flat
number, deliveries, payments and expenses, with balances and reports
derived on read.

DESIGN PRINCIPLES:
1. Validate -> build -> save, and nothing is written on a failed check
2. Snapshots on deliveries and payments are frozen at creation
3. Storage problems never crash the ledger; they are logged
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Water Ledger Team"
