"""
Data models for the chai ledger engine.

- Input records: Customer, LedgerEntry, Batch
- Derived views: summaries, breakdowns, ledger rows and report sections
"""

from .records import Batch, Customer, LedgerEntry
from .breakdowns import (
    UNKNOWN_CUSTOMER,
    Cell,
    CollectionBreakdown,
    CollectionEntry,
    CollectionPayment,
    CollectionSummary,
    CustomerTotals,
    LedgerRow,
    OutstandingEntry,
    PaymentStatus,
    PnlBreakdown,
    PnlRow,
    PnlTotals,
    Report,
    ReportSection,
    SummaryTotals,
    TransactionSummary,
)

__all__ = [
    # Records
    "Batch",
    "Customer",
    "LedgerEntry",
    # Derived
    "UNKNOWN_CUSTOMER",
    "Cell",
    "CollectionBreakdown",
    "CollectionEntry",
    "CollectionPayment",
    "CollectionSummary",
    "CustomerTotals",
    "LedgerRow",
    "OutstandingEntry",
    "PaymentStatus",
    "PnlBreakdown",
    "PnlRow",
    "PnlTotals",
    "Report",
    "ReportSection",
    "SummaryTotals",
    "TransactionSummary",
]
