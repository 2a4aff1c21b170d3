"""
Payment reminders.

Drafts WhatsApp reminder messages for customers with dues. Sending is left
to the caller; this module only decides who gets a reminder and what it
says. Automatic reminders are deduplicated through a ``ReminderStore``
keyed by ledger-entry id.
"""
from __future__ import annotations
import math
from collections.abc import Iterable
from datetime import date, datetime, timezone
from typing import Any, Optional, Protocol
from jinja2 import Template
from loguru import logger
from pydantic import BaseModel

from .config import ChaiLedgerConfig, default_config
from .errors import ReminderError
from .models import LedgerEntry, OutstandingEntry
from .parsers.base import format_phone_for_display, normalize_phone_number, number_or_zero, sort_timestamp
from .parsers.records import customers_by_id, parse_customers, parse_entries, resolve_balance
from .analytics.outstanding import next_due_entry
from .reports.formatting import format_readable_date
from .templates import load_template


class ReminderDetails(BaseModel):
    """Facts shown in a reminder message."""
    customer_name: str
    tea_name: str | None = None
    purchase_date: datetime | None = None
    invoice_amount: float | None = None
    paid_amount: float | None = None
    invoice_balance: float | None = None
    total_outstanding: float = 0.0
    due_date: date | None = None
    last_payment_date: datetime | None = None
    partner_number: str | None = None


class ReminderDraft(BaseModel):
    recipient: str
    message: str
    customer_id: str
    transaction_id: str | None = None


class ReminderStore(Protocol):
    """Remembers which ledger entries already triggered a reminder."""

    def was_sent(self, entry_id: str) -> bool: ...

    def mark_sent(self, entry_id: str, sent_at: Optional[datetime] = None) -> None: ...


class InMemoryReminderStore:
    def __init__(self):
        self._sent: dict[str, datetime] = {}

    def was_sent(self, entry_id: str) -> bool:
        return entry_id in self._sent

    def mark_sent(self, entry_id: str, sent_at: Optional[datetime] = None) -> None:
        self._sent[entry_id] = sent_at or datetime.now(timezone.utc)

    def __len__(self) -> int:
        return len(self._sent)


def _is_number(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def _currency(value: Optional[float], symbol: str) -> str:
    if not _is_number(value):
        return f"{symbol}0.00"
    return f"{symbol}{value:.2f}"


def compose_reminder_message(details: ReminderDetails, config: Optional[ChaiLedgerConfig] = None) -> str:
    """
    Render the reminder text.

    The balance line shows the invoice balance when known, else the total
    outstanding. The total outstanding gets its own line only when it
    differs from that balance by more than 1.
    """
    config = config or default_config
    symbol = config.currency_symbol

    total = max(details.total_outstanding, 0.0)
    balance = max(details.invoice_balance, 0.0) if _is_number(details.invoice_balance) else total
    tea_label = (details.tea_name or "").strip() or "your latest tea order"

    partner_display = None
    if details.partner_number:
        partner_display = (
            format_phone_for_display(details.partner_number, config.country_code)
            or details.partner_number
        )

    context = {
        "customer_name": details.customer_name,
        "business_name": config.business_name,
        "tea_label": tea_label,
        "purchase_text": format_readable_date(details.purchase_date) if details.purchase_date else "Not recorded",
        "invoice_total": (
            _currency(max(details.invoice_amount, 0.0), symbol) if _is_number(details.invoice_amount) else None
        ),
        "paid_so_far": (
            _currency(max(details.paid_amount, 0.0), symbol) if _is_number(details.paid_amount) else None
        ),
        "balance_due": _currency(balance, symbol),
        "due_suffix": f" (due on {format_readable_date(details.due_date)})" if details.due_date else "",
        "overall_outstanding": _currency(total, symbol) if abs(total - balance) > 1 else None,
        "partner_display": partner_display,
    }

    template = Template(load_template("reminder"), trim_blocks=True, lstrip_blocks=True)
    return template.render(**context)


def _paid_towards(invoice_amount: float, invoice_balance: float, paid_amount: Optional[float]) -> float:
    """Amount paid towards an invoice, never more than the invoice itself."""
    paid = max(number_or_zero(paid_amount), max(invoice_amount - invoice_balance, 0.0))
    return min(paid, max(invoice_amount, 0.0))


def draft_reminder(
    outstanding: OutstandingEntry,
    entries: Optional[Iterable[Any]],
    *,
    partner_number: Optional[str] = None,
    config: Optional[ChaiLedgerConfig] = None,
) -> ReminderDraft:
    """
    Draft a manual reminder for one customer from the outstanding breakdown.

    The message describes the entry due next, else the latest sale.

    Raises:
        ReminderError: If nothing is outstanding, or the partner or
            customer number does not normalize
    """
    config = config or default_config
    name = outstanding.customer_name or "Customer"

    if outstanding.outstanding <= 0:
        raise ReminderError(f"{name} is fully settled")

    partner = normalize_phone_number(partner_number or config.partner_contact, config.country_code)
    if not partner:
        raise ReminderError("Set a partner contact number before sending reminders")

    recipient = outstanding.reminder_phone or normalize_phone_number(outstanding.phone, config.country_code)
    if not recipient:
        raise ReminderError(f"Missing WhatsApp number for {name}")

    history = [e for e in parse_entries(entries) if e.customer_id == outstanding.customer_id]
    history.sort(key=lambda e: sort_timestamp(e.created_at), reverse=True)

    next_due = next_due_entry(history)
    latest_sale = next((e for e in history if not e.is_payment), None)
    last_payment = next((e for e in history if e.is_payment), None)
    primary = next_due or latest_sale

    if primary is not None:
        invoice_amount: Optional[float] = number_or_zero(primary.amount)
        invoice_balance = max(resolve_balance(primary), 0.0)
        paid_amount: Optional[float] = _paid_towards(invoice_amount, invoice_balance, primary.paid_amount)
    else:
        invoice_amount = None
        invoice_balance = max(outstanding.outstanding, 0.0)
        paid_amount = None

    details = ReminderDetails(
        customer_name=name,
        tea_name=(primary.tea_name if primary else None) or (latest_sale.tea_name if latest_sale else None),
        purchase_date=(primary.created_at if primary else None) or (latest_sale.created_at if latest_sale else None),
        invoice_amount=invoice_amount,
        paid_amount=paid_amount,
        invoice_balance=invoice_balance,
        total_outstanding=outstanding.outstanding,
        due_date=(next_due.due_date if next_due else None) or (primary.due_date if primary else None),
        last_payment_date=last_payment.created_at if last_payment else None,
        partner_number=partner,
    )

    logger.info(f"Drafted reminder for {name} ({recipient})")
    return ReminderDraft(
        recipient=recipient,
        message=compose_reminder_message(details, config),
        customer_id=outstanding.customer_id,
        transaction_id=primary.id if primary else None,
    )


def _auto_details(entry: LedgerEntry, customer_name: str, last_payment: Optional[LedgerEntry], partner: Optional[str]) -> ReminderDetails:
    amount_due = resolve_balance(entry)
    invoice_amount = entry.amount if entry.amount is not None else amount_due
    invoice_balance = max(amount_due, 0.0)
    return ReminderDetails(
        customer_name=customer_name,
        tea_name=entry.tea_name,
        purchase_date=entry.created_at,
        invoice_amount=invoice_amount,
        paid_amount=_paid_towards(invoice_amount, invoice_balance, entry.paid_amount),
        invoice_balance=invoice_balance,
        total_outstanding=max(amount_due, invoice_balance),
        due_date=entry.due_date,
        last_payment_date=last_payment.created_at if last_payment else None,
        partner_number=partner,
    )


def select_due_reminders(
    entries: Optional[Iterable[Any]],
    customers: Optional[Iterable[Any]],
    *,
    as_of: date,
    store: ReminderStore,
    lead_days: Optional[int] = None,
    config: Optional[ChaiLedgerConfig] = None,
) -> list[ReminderDraft]:
    """
    Automatic reminders for entries falling due ``lead_days`` after ``as_of``.

    Entries already recorded in ``store``, entries without an id and
    customers without a usable phone number are skipped. The store is not
    updated here; call ``store.mark_sent`` once a reminder is delivered.
    """
    config = config or default_config
    lead = config.reminder_lead_days if lead_days is None else lead_days
    partner = normalize_phone_number(config.partner_contact, config.country_code)
    lookup = customers_by_id(parse_customers(customers))
    parsed = parse_entries(entries)

    payments_by_customer: dict[str, LedgerEntry] = {}
    for entry in sorted(parsed, key=lambda e: sort_timestamp(e.created_at)):
        if entry.is_payment and entry.customer_id:
            payments_by_customer[entry.customer_id] = entry

    drafts: list[ReminderDraft] = []
    for entry in parsed:
        if entry.due_date is None or resolve_balance(entry) <= 0:
            continue
        if (entry.due_date - as_of).days != lead:
            continue
        if not entry.id:
            logger.debug("Skipping due entry without id; it cannot be deduplicated")
            continue
        if store.was_sent(entry.id):
            continue

        customer = lookup.get(entry.customer_id) if entry.customer_id else None
        raw_phone = (
            (customer.whatsapp_number or customer.contact if customer else None)
            or entry.customer_phone
        )
        recipient = normalize_phone_number(raw_phone, config.country_code)
        if not recipient:
            logger.debug(f"Skipping reminder for entry {entry.id}: no usable phone number")
            continue

        customer_name = (customer.display_name if customer else None) or entry.customer_name or "Customer"
        details = _auto_details(entry, customer_name, payments_by_customer.get(entry.customer_id or ""), partner)
        drafts.append(
            ReminderDraft(
                recipient=recipient,
                message=compose_reminder_message(details, config),
                customer_id=entry.customer_id or "",
                transaction_id=entry.id,
            )
        )

    logger.info(f"{len(drafts)} reminders due for {as_of.isoformat()}")
    return drafts
