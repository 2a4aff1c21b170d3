"""
Normalization and coercion of raw upstream records.

- Base: numeric, phone, date and type normalization
- Records: alias resolution into Customer / LedgerEntry / Batch models
"""

from .base import (
    DEFAULT_COUNTRY_CODE,
    format_phone_for_display,
    format_phone_with_country_code,
    is_payment,
    normalize_phone_number,
    normalize_type,
    parse_due_date,
    parse_timestamp,
    pick_first_number,
    to_finite_number,
)
from .records import (
    collected_amount,
    customers_by_id,
    outstanding_delta,
    parse_batch,
    parse_batches,
    parse_customer,
    parse_customers,
    parse_entries,
    parse_entry,
    resolve_balance,
)

__all__ = [
    # Base
    "DEFAULT_COUNTRY_CODE",
    "format_phone_for_display",
    "format_phone_with_country_code",
    "is_payment",
    "normalize_phone_number",
    "normalize_type",
    "parse_due_date",
    "parse_timestamp",
    "pick_first_number",
    "to_finite_number",
    # Records
    "collected_amount",
    "customers_by_id",
    "outstanding_delta",
    "parse_batch",
    "parse_batches",
    "parse_customer",
    "parse_customers",
    "parse_entries",
    "parse_entry",
    "resolve_balance",
]
