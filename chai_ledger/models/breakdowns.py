"""
Derived read-side views.

These are recomputed from a snapshot on every call and never persisted.
"""
from __future__ import annotations
from datetime import date, datetime
from typing import Literal, Union
from pydantic import BaseModel, Field, computed_field

from .records import Customer

UNKNOWN_CUSTOMER = "__unknown"

PaymentStatus = Literal["full paid", "partial paid", "partial left"]
Cell = Union[int, float, str]


class CustomerTotals(BaseModel):
    total_sales: float = 0.0
    total_collections: float = 0.0
    # Raw running sum; payments may push it below zero
    balance: float = 0.0
    transaction_count: int = 0

    @computed_field
    @property
    def outstanding(self) -> float:
        return max(self.balance, 0.0)


class SummaryTotals(BaseModel):
    total_sales: float = 0.0
    total_collections: float = 0.0
    outstanding: float = 0.0


class TransactionSummary(BaseModel):
    per_customer: dict[str, CustomerTotals] = Field(default_factory=dict)
    totals: SummaryTotals = Field(default_factory=SummaryTotals)

    def get(self, customer_id: str | None) -> CustomerTotals | None:
        return self.per_customer.get(customer_id or UNKNOWN_CUSTOMER)


class CollectionPayment(BaseModel):
    id: str
    amount: float
    created_at: datetime | None = None
    tea_name: str | None = None
    quantity: float | None = None
    type: str
    sale_amount: float | None = None
    balance: float | None = None
    status: PaymentStatus


class CollectionEntry(BaseModel):
    customer_id: str
    customer_name: str
    customer: Customer | None = None
    total_paid: float = 0.0
    payments: list[CollectionPayment] = Field(default_factory=list)


class CollectionSummary(BaseModel):
    customers_count: int = 0
    payment_count: int = 0
    total_amount: float = 0.0


class CollectionBreakdown(BaseModel):
    details: list[CollectionEntry] = Field(default_factory=list)
    summary: CollectionSummary = Field(default_factory=CollectionSummary)


class OutstandingEntry(BaseModel):
    customer_id: str
    customer: Customer | None = None
    customer_name: str
    outstanding: float
    phone: str | None = None
    # None when the phone does not normalize; such customers get no reminders
    reminder_phone: str | None = None
    next_due: date | None = None
    last_activity: datetime | None = None


class PnlRow(BaseModel):
    id: str
    name: str
    batch_id: str | None = None
    sold_quantity: float = 0.0
    remaining_quantity: float = 0.0
    purchase_rate: float = 0.0
    avg_sell_rate: float = 0.0
    total_sale_value: float = 0.0
    profit_per_kg: float | None = None
    pnl: float = 0.0
    sold_at: datetime | None = None


class PnlTotals(BaseModel):
    pnl: float = 0.0
    sold_quantity: float = 0.0
    sale_value: float = 0.0


class PnlBreakdown(BaseModel):
    rows: list[PnlRow] = Field(default_factory=list)
    totals: PnlTotals = Field(default_factory=PnlTotals)
    tier: Literal["sales", "batches"] = "sales"

    def average_profit_per_kg(self) -> float | None:
        """Quantity-weighted profit per kg across rows, None without sales."""
        if not self.rows or self.totals.sold_quantity == 0:
            return None
        weighted = sum(
            row.profit_per_kg * row.sold_quantity
            for row in self.rows
            if row.profit_per_kg is not None
        )
        return weighted / self.totals.sold_quantity


class LedgerRow(BaseModel):
    customer_id: str
    customer_name: str
    shop_name: str
    entry_id: str | None = None
    entry_date: datetime | None = None
    tea_name: str
    type_label: str
    quantity: float | None = None
    rate: float | None = None
    debit: float = 0.0
    credit: float = 0.0
    total_amount: float = 0.0
    # This entry's own stored balance, floored at zero
    balance: float = 0.0
    running_balance: float = 0.0
    status: PaymentStatus
    status_label: str
    due_date: date | None = None


class ReportSection(BaseModel):
    title: str
    sheet_name: str
    headers: list[str]
    rows: list[list[Cell]] = Field(default_factory=list)
    column_widths: list[int] = Field(default_factory=list)
    # Metadata lines a renderer places above the header row
    banner: list[str] = Field(default_factory=list)


class Report(BaseModel):
    template: str
    template_label: str
    scope_label: str
    generated_at: datetime | None = None
    sections: list[ReportSection] = Field(default_factory=list)

    def section(self, title: str) -> ReportSection | None:
        for section in self.sections:
            if section.title == title or section.sheet_name == title:
                return section
        return None

    @property
    def sheet_names(self) -> list[str]:
        return [section.sheet_name for section in self.sections]
