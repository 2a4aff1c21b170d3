"""
Outstanding dues per customer, largest first.

Consumed on screen and, one entry at a time, by the reminder drafting in
``chai_ledger.reminders``.
"""
from __future__ import annotations
from collections.abc import Iterable
from datetime import date
from typing import Any, Optional
from loguru import logger

from ..models import UNKNOWN_CUSTOMER, LedgerEntry, OutstandingEntry, TransactionSummary
from ..parsers.base import DEFAULT_COUNTRY_CODE, first_text, normalize_phone_number, sort_timestamp
from ..parsers.records import customers_by_id, parse_customers, parse_entries, resolve_balance
from .collections import resolve_customer_name
from .summary import customer_outstanding


def group_entries_by_customer(entries: Iterable[LedgerEntry]) -> dict[str, list[LedgerEntry]]:
    grouped: dict[str, list[LedgerEntry]] = {}
    for entry in entries:
        grouped.setdefault(entry.customer_id or UNKNOWN_CUSTOMER, []).append(entry)
    return grouped


def next_due_entry(entries: Iterable[LedgerEntry], as_of: Optional[date] = None) -> Optional[LedgerEntry]:
    """
    Entry with the earliest due date that still carries a balance.

    With ``as_of``, due dates before it are ignored. Ties keep input order.
    """
    candidates = [
        e for e in entries
        if e.due_date is not None
        and resolve_balance(e) > 0
        and (as_of is None or e.due_date >= as_of)
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda e: e.due_date)


def build_outstanding_breakdown(
    summary: TransactionSummary,
    entries: Optional[Iterable[Any]],
    customers: Optional[Iterable[Any]] = None,
    *,
    as_of: Optional[date] = None,
    country_code: str = DEFAULT_COUNTRY_CODE,
) -> list[OutstandingEntry]:
    """
    List customers that still owe money, sorted by amount owed.

    The unknown-customer bucket is never listed. Outstanding honours the
    customer's cached balance as a lower bound (see ``customer_outstanding``).
    """
    lookup = customers_by_id(parse_customers(customers))
    by_customer = group_entries_by_customer(parse_entries(entries))
    result: list[OutstandingEntry] = []

    for customer_id, totals in summary.per_customer.items():
        if customer_id == UNKNOWN_CUSTOMER:
            continue

        customer = lookup.get(customer_id)
        outstanding = customer_outstanding(customer, totals)
        if outstanding <= 0:
            continue

        txns = sorted(
            by_customer.get(customer_id, []),
            key=lambda e: sort_timestamp(e.created_at),
            reverse=True,
        )
        latest = txns[0] if txns else None
        due = next_due_entry(by_customer.get(customer_id, []), as_of)
        named = next((e for e in txns if e.customer_name), latest)

        phone = None
        if customer is not None:
            phone = first_text(customer.whatsapp_number, customer.contact)
        if phone is None:
            phone = next((e.customer_phone for e in txns if e.customer_phone), None)

        result.append(
            OutstandingEntry(
                customer_id=customer_id,
                customer=customer,
                customer_name=resolve_customer_name(customer_id, customer, named),
                outstanding=outstanding,
                phone=phone,
                reminder_phone=normalize_phone_number(phone, country_code),
                next_due=due.due_date if due else None,
                last_activity=latest.created_at if latest else None,
            )
        )

    result.sort(key=lambda o: o.outstanding, reverse=True)
    logger.debug(f"Outstanding breakdown: {len(result)} customers with dues")
    return result
