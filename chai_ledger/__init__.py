"""
Chai Ledger - Reconciliation and reporting for a tea trading business.

Turns an append-only ledger of sales, payments and tea batches into
consistent per-customer balances, collection and outstanding-dues
breakdowns, inventory profit and loss, and templated multi-sheet reports.

Key Features:
- Lenient coercion of heterogeneous upstream rows (alias field names,
  numeric strings, missing values)
- Per-customer balances that agree with the chronological ledger replay
- Payment status classification for every collection
- Two-tier P&L: sale-level when available, batch aggregates otherwise
- Renderer-agnostic report sections (XLSX, CSV and PDF renderers consume them)
- WhatsApp payment reminder drafting with injectable deduplication

Every builder is a pure function over an in-memory snapshot.

Usage:
    # Outstanding dues from a snapshot file
    python -m chai_ledger outstanding snapshot.json

    # Ledger report for one customer as CSV
    python -m chai_ledger report snapshot.json --template ledger --customer c1 --format csv
"""

__version__ = "1.0.0"

from .config import ChaiLedgerConfig
from .errors import ChaiLedgerError, ReminderError, SnapshotError, UnknownTemplateError
from .snapshot import Snapshot, load_snapshot
from .analytics import (
    build_collection_breakdown,
    build_customer_ledger,
    build_outstanding_breakdown,
    build_pnl_breakdown,
    compute_transaction_summary,
)
from .reports import assemble_batch_report, assemble_report
from .reminders import (
    InMemoryReminderStore,
    ReminderDraft,
    ReminderStore,
    compose_reminder_message,
    draft_reminder,
    select_due_reminders,
)

__all__ = [
    # Config and errors
    "ChaiLedgerConfig",
    "ChaiLedgerError",
    "ReminderError",
    "SnapshotError",
    "UnknownTemplateError",
    # Snapshot
    "Snapshot",
    "load_snapshot",
    # Analytics
    "build_collection_breakdown",
    "build_customer_ledger",
    "build_outstanding_breakdown",
    "build_pnl_breakdown",
    "compute_transaction_summary",
    # Reports
    "assemble_batch_report",
    "assemble_report",
    # Reminders
    "InMemoryReminderStore",
    "ReminderDraft",
    "ReminderStore",
    "compose_reminder_message",
    "draft_reminder",
    "select_due_reminders",
    "__version__",
]
