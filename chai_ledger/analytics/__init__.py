"""
Read-side analytics over a snapshot of customers, ledger entries and batches.

- Summary: per-customer and global totals
- Collections: money received, grouped per customer, with payment status
- Outstanding: customers with dues, largest first
- P&L: sale-level profit, falling back to batch aggregates
- Ledger: chronological replay with running balances

All builders are pure: same snapshot in, same result out.
"""

from .summary import compute_transaction_summary, customer_outstanding
from .collections import build_collection_breakdown, derive_status, resolve_customer_name
from .outstanding import build_outstanding_breakdown, group_entries_by_customer, next_due_entry
from .pnl import build_pnl_breakdown
from .ledger import build_customer_ledger

__all__ = [
    "compute_transaction_summary",
    "customer_outstanding",
    "build_collection_breakdown",
    "derive_status",
    "resolve_customer_name",
    "build_outstanding_breakdown",
    "group_entries_by_customer",
    "next_due_entry",
    "build_pnl_breakdown",
    "build_customer_ledger",
]
