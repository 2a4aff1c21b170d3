"""
Canonical input records.

Upstream rows arrive with many alias field names; ``chai_ledger.parsers.records``
resolves those once and builds these models, so the analytics code only
ever sees one name per concept. Every field is optional.
"""
from __future__ import annotations
from datetime import date, datetime
from pydantic import BaseModel


class Customer(BaseModel):
    id: str | None = None
    full_name: str | None = None
    shop_name: str | None = None
    address: str | None = None
    contact: str | None = None
    whatsapp_number: str | None = None
    # Cached balance from the customers table; may be stale
    outstanding_balance: float = 0.0
    created_at: datetime | None = None

    @property
    def display_name(self) -> str | None:
        return self.full_name or self.shop_name


class LedgerEntry(BaseModel):
    id: str | None = None
    customer_id: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    type: str = ""
    amount: float | None = None
    quantity: float | None = None
    paid_amount: float | None = None
    balance: float | None = None
    # Payment rows only: the invoice this payment settles
    sale_amount: float | None = None
    # Payment rows only: customer balance left after the payment
    remaining_balance: float | None = None
    sale_rate: float | None = None
    purchase_rate: float | None = None
    remaining_quantity: float | None = None
    profit: float | None = None
    batch_id: str | None = None
    batch_name: str | None = None
    tea_name: str | None = None
    due_date: date | None = None
    created_at: datetime | None = None

    @property
    def is_payment(self) -> bool:
        return self.type == "payment"


class Batch(BaseModel):
    id: str | None = None
    name: str | None = None
    label: str | None = None
    total_quantity: float | None = None
    remaining_quantity: float | None = None
    purchase_rate: float | None = None
    # Aggregates present when rows come from the batch P&L view
    sold_quantity: float | None = None
    avg_sell_rate: float | None = None
    total_sale_value: float | None = None
    pnl: float | None = None
    created_at: datetime | None = None
