"""
Collection breakdown: who paid what, grouped per customer.

Every entry that brought money in (payments and sales with an amount
collected at sale time) becomes a CollectionPayment tagged with a status.
"""
from __future__ import annotations
import math
from collections.abc import Iterable
from typing import Any, Optional
from loguru import logger

from ..models import (
    UNKNOWN_CUSTOMER,
    CollectionBreakdown,
    CollectionEntry,
    CollectionPayment,
    CollectionSummary,
    Customer,
    LedgerEntry,
    PaymentStatus,
)
from ..parsers.base import is_payment, number_or_zero, sort_timestamp
from ..parsers.records import customers_by_id, parse_customers, parse_entries

FULL_PAID: PaymentStatus = "full paid"
PARTIAL_PAID: PaymentStatus = "partial paid"
PARTIAL_LEFT: PaymentStatus = "partial left"


def _finite_or(value: Optional[float], default: float) -> float:
    if value is None or not math.isfinite(value):
        return default
    return value


def derive_status(
    entry_type: str,
    sale_amount: Optional[float],
    amount_paid: float,
    balance: float,
) -> PaymentStatus:
    """
    Payment status of one entry.

    Rules are checked in order and the first match wins; a settled balance
    means "full paid" whatever the other fields say.
    """
    normalized_balance = _finite_or(balance, 0.0)
    normalized_paid = _finite_or(amount_paid, 0.0)
    normalized_sale = _finite_or(sale_amount, 0.0)

    if normalized_balance <= 0:
        return FULL_PAID

    if is_payment(entry_type):
        return PARTIAL_PAID if normalized_balance > 0 else FULL_PAID

    if normalized_sale == 0 and normalized_paid == 0:
        return PARTIAL_LEFT

    if 0 < normalized_paid < normalized_sale:
        return PARTIAL_PAID

    if normalized_paid >= normalized_sale and normalized_sale > 0:
        return FULL_PAID

    return PARTIAL_LEFT


def _amounts(entry: LedgerEntry) -> tuple[float, float, float]:
    """(amount_paid, sale_amount, balance) with the per-type fallbacks."""
    if entry.is_payment:
        amount_paid = number_or_zero(entry.amount)
        sale_amount = number_or_zero(entry.sale_amount)
        if entry.balance is not None:
            balance = entry.balance
        else:
            balance = number_or_zero(entry.remaining_balance)
    else:
        amount_paid = number_or_zero(entry.paid_amount)
        sale_amount = number_or_zero(entry.amount)
        if entry.balance is not None:
            balance = entry.balance
        else:
            balance = sale_amount - amount_paid
    return amount_paid, sale_amount, balance


def resolve_customer_name(
    customer_id: str,
    customer: Optional[Customer],
    entry: Optional[LedgerEntry],
    current: Optional[str] = None,
) -> str:
    """Display name: customer record, then the entry's own name, then a placeholder."""
    if customer is not None and customer.display_name:
        return customer.display_name
    if entry is not None and entry.customer_name:
        return entry.customer_name
    if current:
        return current
    return "Unknown customer" if customer_id == UNKNOWN_CUSTOMER else "Customer"


def build_collection_breakdown(
    entries: Optional[Iterable[Any]],
    customers: Optional[Iterable[Any]] = None,
) -> CollectionBreakdown:
    """
    Group money-bearing entries by customer.

    Payments within a customer are newest first (undated last); customers
    are ordered by total collected, largest first.
    """
    lookup = customers_by_id(parse_customers(customers))
    grouped: dict[str, CollectionEntry] = {}
    skipped = 0

    for entry in parse_entries(entries):
        customer_id = entry.customer_id or UNKNOWN_CUSTOMER
        amount_paid, sale_amount, balance = _amounts(entry)
        if amount_paid <= 0:
            skipped += 1
            continue

        group = grouped.get(customer_id)
        if group is None:
            customer = lookup.get(customer_id)
            group = grouped[customer_id] = CollectionEntry(
                customer_id=customer_id,
                customer=customer,
                customer_name=resolve_customer_name(customer_id, customer, entry),
            )
        else:
            group.customer_name = resolve_customer_name(
                customer_id, group.customer, entry, group.customer_name
            )

        group.total_paid += amount_paid
        group.payments.append(
            CollectionPayment(
                id=entry.id or f"{customer_id}-{len(group.payments)}",
                amount=amount_paid,
                created_at=entry.created_at,
                tea_name=entry.tea_name or entry.batch_name,
                quantity=entry.quantity,
                type=entry.type,
                sale_amount=sale_amount if sale_amount > 0 else None,
                balance=balance,
                status=derive_status(entry.type, sale_amount, amount_paid, balance),
            )
        )

    details = list(grouped.values())
    for group in details:
        group.payments.sort(key=lambda p: sort_timestamp(p.created_at), reverse=True)
    details.sort(key=lambda g: g.total_paid, reverse=True)

    summary = CollectionSummary(
        customers_count=len(details),
        payment_count=sum(len(g.payments) for g in details),
        total_amount=sum(g.total_paid for g in details),
    )

    logger.debug(
        f"Collection breakdown: {summary.payment_count} payments from "
        f"{summary.customers_count} customers ({skipped} entries without money in)"
    )
    return CollectionBreakdown(details=details, summary=summary)
