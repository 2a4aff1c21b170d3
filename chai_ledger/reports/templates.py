"""
Report template assembler.

Turns a snapshot into named tabular sections (one per sheet or PDF page).
Nothing here knows about XLSX, CSV or PDF encoding; renderers receive
``ReportSection`` objects with headers, rows and a metadata banner.
"""
from __future__ import annotations
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from loguru import logger

from ..config import ChaiLedgerConfig, default_config
from ..errors import UnknownTemplateError
from ..models import Batch, Cell, Customer, LedgerEntry, LedgerRow, Report, ReportSection
from ..parsers.base import number_or_zero, sort_timestamp
from ..parsers.records import (
    collected_amount,
    customers_by_id,
    parse_batches,
    parse_customers,
    parse_entries,
    resolve_balance,
)
from ..analytics.ledger import build_customer_ledger, type_label
from ..analytics.summary import compute_transaction_summary, customer_outstanding
from .formatting import PLACEHOLDER, as_report_number, format_readable_date
from .sections import SectionFactory


# Template definitions
# Each template maps to the sections it includes (in output order)
TEMPLATES = {
    "comprehensive": {
        "label": "Comprehensive Overview",
        "description": "Tea stock, customer summary, daily collections, and ledgers.",
        "sections": ["teaStock", "customerSummary", "dailyCollections", "ledger"],
    },
    "teaStock": {
        "label": "Tea Stock Ledger",
        "description": "Inventory-focused sheet with batch history and valuations.",
        "sections": ["teaStock"],
    },
    "customerSummary": {
        "label": "Customer Snapshot",
        "description": "Per-customer quantity, billing, payments, and outstanding dues.",
        "sections": ["customerSummary"],
    },
    "dailyCollections": {
        "label": "Daily Collections",
        "description": "Day-wise inflow tracker consolidating all receipts.",
        "sections": ["dailyCollections"],
    },
    "ledger": {
        "label": "Customer Ledger",
        "description": "Transaction-level ledger with running balances.",
        "sections": ["ledger"],
    },
}


def tea_stock_headers(currency: str = "₹") -> list[str]:
    return [
        "Tea Name",
        "Batch / Lot",
        "Purchase Date",
        f"Purchase Rate ({currency}/kg)",
        "Quantity Purchased (kg)",
        f"Total Cost ({currency})",
        "Remaining Quantity (kg)",
        "Tea Total Quantity (kg)",
        f"Tea Total Value ({currency})",
    ]


def customer_summary_headers(currency: str = "₹") -> list[str]:
    return [
        "Customer",
        "Shop / Business",
        "Total Quantity (kg)",
        f"Average Rate ({currency}/kg)",
        f"Total Bill ({currency})",
        f"Total Paid ({currency})",
        f"Outstanding ({currency})",
    ]


def daily_collections_headers(currency: str = "₹") -> list[str]:
    return ["Date", "Day", f"Collections ({currency})", "Entries"]


def ledger_headers(currency: str = "₹") -> list[str]:
    return [
        "Customer",
        "Shop",
        "Date",
        "Tea Name",
        "Type",
        "Quantity (kg)",
        f"Rate ({currency}/kg)",
        f"Debit ({currency})",
        f"Credit ({currency})",
        f"Running Balance ({currency})",
        "Status",
        "Due Date",
    ]


LEDGER_COLUMN_WIDTHS = [26, 24, 20, 22, 18, 18, 18, 18, 18, 22, 22, 18]

BATCH_TEMPLATE_LABEL = "Tea Batch Detail"


@dataclass
class ReportContext:
    """Everything the section builders need, resolved once per report."""

    customers: list[Customer]
    entries: list[LedgerEntry]
    batches: list[Batch]
    factory: SectionFactory
    currency: str = "₹"
    single_customer: bool = False
    ledgers: list[tuple[Customer, list[LedgerRow]]] = field(default_factory=list)


def template_label(template: str) -> str:
    if template not in TEMPLATES:
        raise UnknownTemplateError(
            f"Unknown report template '{template}'. Available: {', '.join(TEMPLATES)}"
        )
    return TEMPLATES[template]["label"]


def _customer_name(customer: Customer, default: str = "Customer") -> str:
    return customer.full_name or default


def _sort_name(customer: Customer) -> str:
    return (customer.display_name or "").lower()


def select_customers(customers: list[Customer], customer_id: Optional[str]) -> list[Customer]:
    """Customers in scope, sorted by name; all customers with an id when no id is given."""
    selected = [
        c for c in customers
        if c.id and (customer_id is None or c.id == customer_id)
    ]
    selected.sort(key=_sort_name)
    return selected


# ============================================================================
# Section builders
# ============================================================================

def tea_stock_rows(batches: list[Batch]) -> list[list[Cell]]:
    """
    One row per batch, grouped by tea name.

    Groups are sorted by name and batches within a group oldest first;
    only the first row of a group carries the group totals.
    """
    groups: dict[str, list[Batch]] = {}
    for batch in batches:
        groups.setdefault(batch.name or "Tea Blend", []).append(batch)

    rows: list[list[Cell]] = []
    for tea_name in sorted(groups):
        group = sorted(groups[tea_name], key=lambda b: sort_timestamp(b.created_at))
        group_quantity = sum(number_or_zero(b.total_quantity) for b in group)
        group_cost = sum(
            number_or_zero(b.total_quantity) * number_or_zero(b.purchase_rate) for b in group
        )

        for index, batch in enumerate(group):
            quantity = number_or_zero(batch.total_quantity)
            rate = number_or_zero(batch.purchase_rate)
            rows.append([
                tea_name,
                batch.label or batch.name or tea_name,
                format_readable_date(batch.created_at),
                as_report_number(rate),
                as_report_number(quantity),
                as_report_number(quantity * rate),
                as_report_number(number_or_zero(batch.remaining_quantity)),
                as_report_number(group_quantity) if index == 0 else "",
                as_report_number(group_cost) if index == 0 else "",
            ])
    return rows


def customer_summary_rows(customers: list[Customer], entries: list[LedgerEntry]) -> list[list[Cell]]:
    summary = compute_transaction_summary(entries)
    quantities: dict[str, float] = {}
    bills: dict[str, float] = {}
    paid: dict[str, float] = {}

    for entry in entries:
        key = entry.customer_id or ""
        paid[key] = paid.get(key, 0.0) + collected_amount(entry)
        if not entry.is_payment:
            quantities[key] = quantities.get(key, 0.0) + number_or_zero(entry.quantity)
            bills[key] = bills.get(key, 0.0) + number_or_zero(entry.amount)

    rows = []
    for customer in customers:
        quantity = quantities.get(customer.id, 0.0)
        bill = bills.get(customer.id, 0.0)
        average_rate = bill / quantity if quantity > 0 else 0.0
        rows.append([
            _customer_name(customer),
            customer.shop_name or PLACEHOLDER,
            as_report_number(quantity),
            as_report_number(average_rate),
            as_report_number(bill),
            as_report_number(paid.get(customer.id, 0.0)),
            as_report_number(customer_outstanding(customer, summary.get(customer.id))),
        ])

    rows.sort(key=lambda row: str(row[0]).lower())
    return rows


def daily_collection_rows(entries: list[LedgerEntry]) -> list[list[Cell]]:
    """Money collected per UTC calendar day, oldest day first."""
    days: dict[str, dict[str, Any]] = {}
    for entry in entries:
        if entry.created_at is None:
            continue
        credit = collected_amount(entry)
        if credit <= 0:
            continue

        stamp = entry.created_at.astimezone(timezone.utc)
        key = stamp.date().isoformat()
        day = days.setdefault(key, {"date": stamp.date(), "amount": 0.0, "entries": 0})
        day["amount"] += credit
        day["entries"] += 1

    return [
        [
            format_readable_date(day["date"]),
            f"{day['date']:%A}",
            as_report_number(day["amount"]),
            day["entries"],
        ]
        for _, day in sorted(days.items())
    ]


def ledger_section_rows(rows: list[LedgerRow]) -> list[list[Cell]]:
    return [
        [
            row.customer_name,
            row.shop_name,
            format_readable_date(row.entry_date),
            row.tea_name,
            row.type_label,
            as_report_number(row.quantity) if row.quantity is not None else "",
            as_report_number(row.rate) if row.rate is not None else "",
            as_report_number(row.debit),
            as_report_number(row.credit),
            as_report_number(row.running_balance),
            row.status_label,
            format_readable_date(row.due_date),
        ]
        for row in rows
    ]


def _tea_stock_sections(ctx: ReportContext) -> list[ReportSection]:
    return [
        ctx.factory.create(
            "Tea Stock Overview",
            tea_stock_headers(ctx.currency),
            tea_stock_rows(ctx.batches),
            sheet_name="Tea Stock",
            column_widths=[22, 20, 18, 18, 18, 18, 18, 18, 18],
            empty_message="No tea stock records available",
        )
    ]


def _customer_summary_sections(ctx: ReportContext) -> list[ReportSection]:
    return [
        ctx.factory.create(
            "Customer Summary",
            customer_summary_headers(ctx.currency),
            customer_summary_rows(ctx.customers, ctx.entries),
            column_widths=[26, 26, 18, 18, 18, 18, 18],
            empty_message="No customer activity recorded",
        )
    ]


def _daily_collection_sections(ctx: ReportContext) -> list[ReportSection]:
    return [
        ctx.factory.create(
            "Daily Collections",
            daily_collections_headers(ctx.currency),
            daily_collection_rows(ctx.entries),
            column_widths=[20, 20, 20, 14],
            empty_message="No collections recorded",
        )
    ]


def _ledger_sections(ctx: ReportContext) -> list[ReportSection]:
    all_rows = [row for _, rows in ctx.ledgers for row in rows]
    sections = [
        ctx.factory.create(
            "Customer Ledger",
            ledger_headers(ctx.currency),
            ledger_section_rows(all_rows),
            column_widths=LEDGER_COLUMN_WIDTHS,
            empty_message="No ledger entries available",
        )
    ]

    if ctx.single_customer and ctx.ledgers:
        customer, rows = ctx.ledgers[0]
        primary_name = customer.display_name or "customer"
        sections.append(
            ctx.factory.create(
                f"{customer.display_name or 'Customer'} - Balance Sheet",
                ledger_headers(ctx.currency),
                ledger_section_rows(rows),
                sheet_name=f"Balance_{primary_name}",
                column_widths=LEDGER_COLUMN_WIDTHS,
                empty_message="No ledger entries available",
            )
        )
    return sections


SECTION_BUILDERS = {
    "teaStock": _tea_stock_sections,
    "customerSummary": _customer_summary_sections,
    "dailyCollections": _daily_collection_sections,
    "ledger": _ledger_sections,
}


# ============================================================================
# Assemblers
# ============================================================================

def assemble_report(
    template: str,
    customers: Optional[Iterable[Any]],
    entries: Optional[Iterable[Any]],
    batches: Optional[Iterable[Any]] = None,
    *,
    customer_id: Optional[str] = None,
    generated_at: Optional[datetime] = None,
    config: Optional[ChaiLedgerConfig] = None,
) -> Report:
    """
    Assemble the sections of a named report template.

    Args:
        template: One of ``TEMPLATES``
        customers: Customer rows
        entries: Ledger entry rows
        batches: Batch rows (used by the tea stock section)
        customer_id: Limit the report to one customer; None for all customers
        generated_at: Shown in each banner; omitted when None so that the
            same snapshot always yields the same report
        config: Supplies the currency symbol used in headers and status labels

    Raises:
        UnknownTemplateError: If the template name is not recognised
    """
    label = template_label(template)
    config = config or default_config

    all_customers = parse_customers(customers)
    targets = select_customers(all_customers, customer_id)
    target_ids = {c.id for c in targets}
    target_entries = [e for e in parse_entries(entries) if e.customer_id in target_ids]

    if customer_id is None:
        scope_label = "All Customers"
    else:
        if not targets:
            logger.warning(f"No customer matches id '{customer_id}'; report will be empty")
        scope_label = targets[0].display_name if targets and targets[0].display_name else "customer"

    factory = SectionFactory(scope_label=scope_label, template_label=label, generated_at=generated_at)
    ctx = ReportContext(
        customers=targets,
        entries=target_entries,
        batches=parse_batches(batches),
        factory=factory,
        currency=config.currency_symbol,
        single_customer=customer_id is not None,
    )
    if "ledger" in TEMPLATES[template]["sections"]:
        ctx.ledgers = [
            (customer, build_customer_ledger(customer, target_entries, currency_symbol=config.currency_symbol))
            for customer in targets
        ]

    sections: list[ReportSection] = []
    for name in TEMPLATES[template]["sections"]:
        sections.extend(SECTION_BUILDERS[name](ctx))

    logger.info(f"Assembled '{label}' report for {scope_label}: {len(sections)} sections")
    return Report(
        template=template,
        template_label=label,
        scope_label=scope_label,
        generated_at=generated_at,
        sections=sections,
    )


def assemble_batch_report(
    batch: Any,
    customers: Optional[Iterable[Any]],
    entries: Optional[Iterable[Any]],
    *,
    generated_at: Optional[datetime] = None,
    config: Optional[ChaiLedgerConfig] = None,
) -> Report:
    """
    Detail report for a single batch: overview metrics, per-customer impact
    and every transaction drawn from the batch.
    """
    config = config or default_config
    parsed = parse_batches([batch])
    current = parsed[0] if parsed else Batch()
    batch_name = current.name or "Batch"
    scope_label = current.name or current.label or "Tea Batch"
    factory = SectionFactory(
        scope_label=scope_label,
        template_label=BATCH_TEMPLATE_LABEL,
        generated_at=generated_at,
    )
    lookup = customers_by_id(parse_customers(customers))

    txns = [e for e in parse_entries(entries) if e.batch_id and e.batch_id == current.id]
    txns.sort(key=lambda e: sort_timestamp(e.created_at))
    sales = [e for e in txns if not e.is_payment]

    quantity_sold = sum(number_or_zero(e.quantity) for e in sales)
    invoice_total = sum(number_or_zero(e.amount) for e in sales)
    collected_total = sum(collected_amount(e) for e in txns)
    average_rate = invoice_total / quantity_sold if quantity_sold > 0 else 0.0
    currency = config.currency_symbol

    overview_rows: list[list[Cell]] = [
        ["Batch Name", current.name or PLACEHOLDER],
        ["Batch Label", current.label or PLACEHOLDER],
        ["Created On", format_readable_date(current.created_at)],
        [f"Purchase Rate ({currency}/kg)", as_report_number(number_or_zero(current.purchase_rate))],
        ["Total Quantity Purchased (kg)", as_report_number(number_or_zero(current.total_quantity))],
        ["Remaining Quantity (kg)", as_report_number(number_or_zero(current.remaining_quantity))],
        ["Quantity Sold (kg)", as_report_number(quantity_sold)],
        [f"Average Selling Rate ({currency}/kg)", as_report_number(average_rate)],
        [f"Gross Invoice ({currency})", as_report_number(invoice_total)],
        [f"Cash Collected ({currency})", as_report_number(collected_total)],
        [f"Outstanding ({currency})", as_report_number(max(invoice_total - collected_total, 0.0))],
    ]

    impact: dict[str, dict[str, Any]] = {}
    for entry in txns:
        if not entry.customer_id:
            continue
        customer = lookup.get(entry.customer_id)
        row = impact.setdefault(entry.customer_id, {
            "name": (customer.full_name if customer else None) or entry.customer_name or "Customer",
            "shop": (customer.shop_name if customer else None) or PLACEHOLDER,
            "quantity": 0.0,
            "invoice": 0.0,
            "paid": 0.0,
        })
        if not entry.is_payment:
            row["quantity"] += number_or_zero(entry.quantity)
            row["invoice"] += number_or_zero(entry.amount)
        row["paid"] += collected_amount(entry)

    impact_rows = [
        [
            row["name"],
            row["shop"],
            as_report_number(row["quantity"]),
            as_report_number(row["invoice"]),
            as_report_number(row["paid"]),
            as_report_number(max(row["invoice"] - row["paid"], 0.0)),
        ]
        for row in sorted(impact.values(), key=lambda r: r["name"])
    ]

    transaction_rows = []
    for entry in txns:
        customer = lookup.get(entry.customer_id) if entry.customer_id else None
        amount = number_or_zero(entry.amount)
        quantity = number_or_zero(entry.quantity)
        credit = collected_amount(entry)
        due = max(resolve_balance(entry), 0.0)
        if entry.is_payment:
            status = f"Payment Received {currency}{credit:.2f}"
        elif due > 0:
            status = f"Due {currency}{due:.2f}"
        else:
            status = "Fully Paid"

        transaction_rows.append([
            format_readable_date(entry.created_at),
            (customer.full_name if customer else None) or entry.customer_name or "Customer",
            type_label(entry),
            "" if entry.is_payment else as_report_number(quantity),
            as_report_number(amount / quantity) if not entry.is_payment and quantity else "",
            as_report_number(amount),
            as_report_number(credit),
            as_report_number(due),
            status,
        ])

    sections = [
        factory.create(
            "Batch Overview",
            ["Metric", "Value"],
            overview_rows,
            sheet_name=f"{batch_name}_Overview",
            column_widths=[30, 24],
        ),
        factory.create(
            "Customer Impact",
            [
                "Customer",
                "Shop / Business",
                "Quantity Sold (kg)",
                f"Invoice ({currency})",
                f"Paid ({currency})",
                f"Outstanding ({currency})",
            ],
            impact_rows,
            sheet_name=f"{batch_name}_Customers",
            column_widths=[26, 26, 20, 20, 20, 20],
            empty_message="No customer transactions for this batch",
        ),
        factory.create(
            "Batch Transactions",
            [
                "Date",
                "Customer",
                "Type",
                "Quantity (kg)",
                f"Rate ({currency}/kg)",
                f"Invoice ({currency})",
                f"Paid ({currency})",
                f"Balance ({currency})",
                "Status",
            ],
            transaction_rows,
            sheet_name=f"{batch_name}_Transactions",
            column_widths=[20, 24, 18, 18, 18, 18, 18, 18, 28],
            empty_message="No transactions recorded for this batch",
        ),
    ]

    logger.info(f"Assembled batch report for {scope_label}: {len(txns)} transactions")
    return Report(
        template="batch",
        template_label=BATCH_TEMPLATE_LABEL,
        scope_label=scope_label,
        generated_at=generated_at,
        sections=sections,
    )
