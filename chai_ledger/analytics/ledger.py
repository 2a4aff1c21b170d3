"""
Chronological customer ledger with a running balance.

The running balance moves by ``debit - credit`` per entry and never reads
stored ``balance`` fields. Where those fields are consistent with amount and
paid amount, the final running balance equals the summary balance.
"""
from __future__ import annotations
from collections.abc import Iterable
from typing import Any, Optional

from ..models import Customer, LedgerEntry, LedgerRow
from ..parsers.base import number_or_zero, sort_timestamp
from ..parsers.records import collected_amount, parse_entries
from .collections import derive_status


def type_label(entry: LedgerEntry) -> str:
    if entry.is_payment:
        return "Payment"
    if entry.type == "partial":
        return "Sale (Partial)"
    return "Sale"


def status_label(entry: LedgerEntry, credit: float, running_balance: float, currency_symbol: str = "₹") -> str:
    if entry.is_payment:
        return f"Payment Received {currency_symbol}{credit:.2f}"
    if running_balance > 0:
        return f"Partial - Due {currency_symbol}{running_balance:.2f}"
    return "Full Payment"


def build_customer_ledger(
    customer: Customer,
    entries: Optional[Iterable[Any]],
    *,
    currency_symbol: str = "₹",
) -> list[LedgerRow]:
    """
    Ledger rows for one customer, oldest first.

    ``entries`` may hold other customers' entries; only this customer's are
    replayed. Undated entries sort first (as epoch 0).
    """
    own = [e for e in parse_entries(entries) if e.customer_id == customer.id]
    own.sort(key=lambda e: sort_timestamp(e.created_at))

    customer_name = customer.full_name or "Customer"
    shop_name = customer.shop_name or "-"
    running = 0.0
    rows: list[LedgerRow] = []

    for entry in own:
        amount = number_or_zero(entry.amount)
        debit = 0.0 if entry.is_payment else amount
        credit = collected_amount(entry)
        quantity = None if entry.is_payment else number_or_zero(entry.quantity)
        rate = amount / quantity if quantity else None

        running += debit - credit

        rows.append(
            LedgerRow(
                customer_id=customer.id or "",
                customer_name=customer_name,
                shop_name=shop_name,
                entry_id=entry.id,
                entry_date=entry.created_at,
                tea_name=entry.tea_name or "-",
                type_label=type_label(entry),
                quantity=quantity,
                rate=rate,
                debit=debit,
                credit=credit,
                total_amount=amount,
                balance=max(number_or_zero(entry.balance), 0.0),
                running_balance=running,
                status=derive_status(entry.type, debit, credit, running),
                status_label=status_label(entry, credit, running, currency_symbol),
                due_date=entry.due_date,
            )
        )

    return rows
