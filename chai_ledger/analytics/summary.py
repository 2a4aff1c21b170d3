"""
Per-customer and global transaction totals.

Balances are accumulated raw and only floored at zero when read, so a
payment recorded against a customer offsets the balances of that
customer's earlier sales.
"""
from __future__ import annotations
from collections.abc import Iterable
from typing import Any, Optional
from loguru import logger

from ..models import UNKNOWN_CUSTOMER, Customer, CustomerTotals, SummaryTotals, TransactionSummary
from ..parsers.base import number_or_zero
from ..parsers.records import outstanding_delta, parse_entries


def compute_transaction_summary(entries: Optional[Iterable[Any]]) -> TransactionSummary:
    """
    Fold ledger entries into per-customer and global totals.

    Entries without a customer id land in the ``"__unknown"`` bucket, which
    counts towards the global totals.
    """
    per_customer: dict[str, CustomerTotals] = {}

    for entry in parse_entries(entries):
        customer_id = entry.customer_id or UNKNOWN_CUSTOMER
        totals = per_customer.get(customer_id)
        if totals is None:
            totals = per_customer[customer_id] = CustomerTotals()

        amount = number_or_zero(entry.amount)
        if entry.is_payment:
            totals.total_collections += amount
        else:
            totals.total_sales += amount
        totals.balance += outstanding_delta(entry)
        totals.transaction_count += 1

    summary_totals = SummaryTotals(
        total_sales=sum(t.total_sales for t in per_customer.values()),
        total_collections=sum(t.total_collections for t in per_customer.values()),
        outstanding=sum(t.outstanding for t in per_customer.values()),
    )

    logger.debug(
        f"Summarized {sum(t.transaction_count for t in per_customer.values())} entries "
        f"across {len(per_customer)} customers"
    )
    return TransactionSummary(per_customer=per_customer, totals=summary_totals)


def customer_outstanding(customer: Optional[Customer], totals: Optional[CustomerTotals]) -> float:
    """
    Outstanding for a customer: ``max(cached hint, derived, 0)``.

    The cached ``outstanding_balance`` column may lag behind the ledger, so
    it is only ever used as a lower bound.
    """
    hint = customer.outstanding_balance if customer is not None else 0.0
    derived = totals.outstanding if totals is not None else 0.0
    return max(hint, derived, 0.0)
