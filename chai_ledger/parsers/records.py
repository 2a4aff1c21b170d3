"""
Coercion of raw upstream rows into canonical records.

Rows come from several tables and views (customers, transactions, batches,
batch_pnl) with overlapping but inconsistent column names, in snake_case or
camelCase. Every alias chain lives here; the analytics modules reference
one canonical field per concept.

Nothing is validated: unknown fields are ignored, missing ones default,
and non-numeric values in numeric fields become None.
"""
from __future__ import annotations
from collections.abc import Iterable, Mapping
from typing import Any, Optional
from loguru import logger

from ..models import Batch, Customer, LedgerEntry
from .base import (
    first_text,
    normalize_type,
    number_or_zero,
    parse_due_date,
    parse_timestamp,
    pick_first_number,
)

CUSTOMER_FIELDS = {
    "id": ("id", "customer_id", "customerId"),
    "full_name": ("full_name", "fullName", "name"),
    "shop_name": ("shop_name", "shopName", "shop"),
    "address": ("address",),
    "contact": ("contact", "contactPhone", "contact_phone", "phone"),
    "whatsapp_number": ("whatsapp_number", "whatsappPhone", "whatsapp_phone", "whatsappNumber"),
    "outstanding_balance": (
        "outstanding_balance",
        "outstandingBalanceHint",
        "outstanding_balance_hint",
        "outstandingBalance",
    ),
    "created_at": ("created_at", "createdAt"),
}

ENTRY_FIELDS = {
    "id": ("id", "transaction_id", "transactionId"),
    "customer_id": ("customer_id", "customerId"),
    "customer_name": ("customer_name", "customerName"),
    "customer_phone": ("customer_phone", "customerPhone"),
    "type": ("type", "tx_type", "transaction_type"),
    "amount": ("amount", "total_amount", "totalAmount"),
    "quantity": ("quantity", "qty", "sold_quantity", "soldQuantity"),
    "paid_amount": ("paid_amount", "paidAmount"),
    "balance": ("balance",),
    "sale_amount": ("sale_amount", "saleAmount", "related_sale_amount", "relatedSaleAmount"),
    "remaining_balance": ("remaining_balance", "remainingBalance", "balance_after", "balanceAfter"),
    "sale_rate": ("sale_rate", "saleRate", "price_per_kg", "pricePerKg", "rate_per_kg", "ratePerKg"),
    "purchase_rate": ("purchase_rate", "purchaseRate"),
    "remaining_quantity": ("remaining_quantity", "remainingQuantity"),
    "profit": ("profit", "pnl", "profit_amount", "profitAmount", "total_profit", "totalProfit"),
    "batch_id": ("batch_id", "batchId"),
    "batch_name": ("batch_name", "batchName"),
    "tea_name": ("tea_name", "teaName", "tea"),
    "due_date": ("due_date", "dueDate"),
    "created_at": ("created_at", "createdAt"),
}

BATCH_FIELDS = {
    "id": ("batch_id", "batchId", "id"),
    "name": ("batch_name", "batchName", "name"),
    "label": ("label",),
    "total_quantity": ("total_quantity", "totalQuantity"),
    "remaining_quantity": ("remaining_quantity", "remainingQuantity"),
    "purchase_rate": ("purchase_rate", "purchaseRate"),
    "sold_quantity": ("sold_quantity", "soldQuantity"),
    "avg_sell_rate": (
        "avg_sale_rate",
        "avg_sell_rate",
        "avg_sale_price",
        "avg_selling_rate",
        "avgSellRate",
        "avgSaleRate",
    ),
    "total_sale_value": (
        "total_sale_value",
        "total_sales_amount",
        "total_sales_value",
        "sales_amount",
        "sale_value",
        "sales_value",
        "sold_revenue",
        "totalSaleValue",
    ),
    "pnl": ("pnl", "total_profit", "profit"),
    "created_at": ("created_at", "createdAt"),
}


def _values(raw: Mapping, keys: tuple[str, ...]) -> list[Any]:
    return [raw.get(key) for key in keys]


def _text(raw: Mapping, keys: tuple[str, ...]) -> Optional[str]:
    return first_text(*_values(raw, keys))


def _number(raw: Mapping, keys: tuple[str, ...]) -> Optional[float]:
    return pick_first_number(*_values(raw, keys))


def _first(raw: Mapping, keys: tuple[str, ...]) -> Any:
    for value in _values(raw, keys):
        if value is not None and value != "":
            return value
    return None


def parse_customer(raw: Any) -> Optional[Customer]:
    """Coerce a customer row (dict or Customer) into a Customer."""
    if raw is None:
        return None
    if isinstance(raw, Customer):
        return raw
    if not isinstance(raw, Mapping):
        logger.debug(f"Skipping non-mapping customer record: {type(raw).__name__}")
        return None

    f = CUSTOMER_FIELDS
    return Customer(
        id=_text(raw, f["id"]),
        full_name=_text(raw, f["full_name"]),
        shop_name=_text(raw, f["shop_name"]),
        address=_text(raw, f["address"]),
        contact=_text(raw, f["contact"]),
        whatsapp_number=_text(raw, f["whatsapp_number"]),
        outstanding_balance=number_or_zero(_first(raw, f["outstanding_balance"])),
        created_at=parse_timestamp(_first(raw, f["created_at"])),
    )


def parse_entry(raw: Any) -> Optional[LedgerEntry]:
    """
    Coerce a transaction row (dict or LedgerEntry) into a LedgerEntry.

    A ``customer`` field may hold either the customer's name or an embedded
    customer row (as returned by joined selects); both feed the entry's
    fallback name and phone.
    """
    if raw is None:
        return None
    if isinstance(raw, LedgerEntry):
        return raw
    if not isinstance(raw, Mapping):
        logger.debug(f"Skipping non-mapping ledger record: {type(raw).__name__}")
        return None

    f = ENTRY_FIELDS
    embedded = raw.get("customer")
    if isinstance(embedded, list):
        embedded = embedded[0] if embedded else None

    customer_name = _text(raw, f["customer_name"])
    customer_phone = _text(raw, f["customer_phone"])
    if isinstance(embedded, Mapping):
        customer_name = customer_name or first_text(
            *_values(embedded, CUSTOMER_FIELDS["full_name"]),
            *_values(embedded, CUSTOMER_FIELDS["shop_name"]),
        )
        customer_phone = customer_phone or first_text(
            *_values(embedded, CUSTOMER_FIELDS["whatsapp_number"]),
            *_values(embedded, CUSTOMER_FIELDS["contact"]),
        )
    elif embedded is not None:
        customer_name = customer_name or first_text(embedded)

    return LedgerEntry(
        id=_text(raw, f["id"]),
        customer_id=_text(raw, f["customer_id"]),
        customer_name=customer_name,
        customer_phone=customer_phone,
        type=normalize_type(_first(raw, f["type"])),
        amount=_number(raw, f["amount"]),
        quantity=_number(raw, f["quantity"]),
        paid_amount=_number(raw, f["paid_amount"]),
        balance=_number(raw, f["balance"]),
        sale_amount=_number(raw, f["sale_amount"]),
        remaining_balance=_number(raw, f["remaining_balance"]),
        sale_rate=_number(raw, f["sale_rate"]),
        purchase_rate=_number(raw, f["purchase_rate"]),
        remaining_quantity=_number(raw, f["remaining_quantity"]),
        profit=_number(raw, f["profit"]),
        batch_id=_text(raw, f["batch_id"]),
        batch_name=_text(raw, f["batch_name"]),
        tea_name=_text(raw, f["tea_name"]),
        due_date=parse_due_date(_first(raw, f["due_date"])),
        created_at=parse_timestamp(_first(raw, f["created_at"])),
    )


def parse_batch(raw: Any) -> Optional[Batch]:
    """Coerce a batch or batch P&L row (dict or Batch) into a Batch."""
    if raw is None:
        return None
    if isinstance(raw, Batch):
        return raw
    if not isinstance(raw, Mapping):
        logger.debug(f"Skipping non-mapping batch record: {type(raw).__name__}")
        return None

    f = BATCH_FIELDS
    return Batch(
        id=_text(raw, f["id"]),
        name=_text(raw, f["name"]),
        label=_text(raw, f["label"]),
        total_quantity=_number(raw, f["total_quantity"]),
        remaining_quantity=_number(raw, f["remaining_quantity"]),
        purchase_rate=_number(raw, f["purchase_rate"]),
        sold_quantity=_number(raw, f["sold_quantity"]),
        avg_sell_rate=_number(raw, f["avg_sell_rate"]),
        total_sale_value=_number(raw, f["total_sale_value"]),
        pnl=_number(raw, f["pnl"]),
        created_at=parse_timestamp(_first(raw, f["created_at"])),
    )


def parse_customers(rows: Optional[Iterable[Any]]) -> list[Customer]:
    return [c for c in (parse_customer(r) for r in (rows or [])) if c is not None]


def parse_entries(rows: Optional[Iterable[Any]]) -> list[LedgerEntry]:
    return [e for e in (parse_entry(r) for r in (rows or [])) if e is not None]


def parse_batches(rows: Optional[Iterable[Any]]) -> list[Batch]:
    return [b for b in (parse_batch(r) for r in (rows or [])) if b is not None]


def customers_by_id(customers: Iterable[Customer]) -> dict[str, Customer]:
    """Lookup of customers by id; customers without an id are left out."""
    lookup: dict[str, Customer] = {}
    for customer in customers:
        if customer.id:
            lookup[customer.id] = customer
    return lookup


def resolve_balance(entry: LedgerEntry) -> float:
    """
    Balance carried by a single entry.

    Payment rows: the stored balance, else the remaining-balance aliases
    (the customer's balance after the payment). Sale rows: the stored
    balance, else amount minus paid amount.
    """
    if entry.balance is not None:
        return entry.balance
    if entry.is_payment:
        return entry.remaining_balance if entry.remaining_balance is not None else 0.0
    return number_or_zero(entry.amount) - number_or_zero(entry.paid_amount)


def collected_amount(entry: LedgerEntry) -> float:
    """Money received with this entry (payments and at-sale collections)."""
    if entry.is_payment:
        return abs(entry.amount or entry.paid_amount or 0.0)
    return max(number_or_zero(entry.paid_amount), 0.0)


def outstanding_delta(entry: LedgerEntry) -> float:
    """
    Contribution of one entry to its customer's outstanding balance.

    Sales add what they left unpaid; payments subtract what they collected.
    The summary aggregator and the ledger replay both use this, so the
    per-customer outstanding equals the final running balance.
    """
    if entry.is_payment:
        return -collected_amount(entry)
    return resolve_balance(entry)
