"""
Base utilities for normalizing raw ledger values.

Provides common functions for coercing upstream records including:
- Numeric parsing (finite numbers only, alias fallback chains)
- Phone number normalization
- Date and timestamp parsing
- Transaction type classification

None of these functions raise on bad input; they return ``None`` (or a
neutral default) so one malformed record never breaks a whole report.
"""
from __future__ import annotations
import math
import re
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional
from loguru import logger

DEFAULT_COUNTRY_CODE = "91"
PAYMENT_TYPE = "payment"

_NUMERIC_NOISE = re.compile(r"[,₹$€£¥\s]")
_NON_DIGITS = re.compile(r"[^0-9]")

_DATE_FORMATS = [
    "%Y-%m-%d",    # 2024-04-01
    "%Y%m%d",      # 20240401
    "%d-%b-%Y",    # 01-Apr-2024
    "%d/%m/%Y",    # 01/04/2024
    "%d-%m-%Y",    # 01-04-2024
]


def to_finite_number(value: Any) -> Optional[float]:
    """
    Return the numeric value of ``value`` if it is finite, else None.

    Handles:
    - ints, floats and Decimals (numeric columns arrive as either)
    - numeric strings with comma separators or currency symbols
    - None, empty strings, NaN and infinities (all None)
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float, Decimal)):
        try:
            num = float(value)
        except (OverflowError, ValueError):
            return None
        return num if math.isfinite(num) else None

    if isinstance(value, str):
        s = _NUMERIC_NOISE.sub("", value)
        if not s:
            return None
        try:
            num = float(s)
        except ValueError:
            return None
        return num if math.isfinite(num) else None

    return None


def pick_first_number(*values: Any) -> Optional[float]:
    """Return the first value that normalizes to a finite number."""
    for value in values:
        parsed = to_finite_number(value)
        if parsed is not None:
            return parsed
    return None


def number_or_zero(value: Any) -> float:
    """Finite number or 0.0."""
    parsed = to_finite_number(value)
    return parsed if parsed is not None else 0.0


def normalize_phone_number(value: Any, country_code: str = DEFAULT_COUNTRY_CODE) -> Optional[str]:
    """
    Normalize a phone number to digits with a country code.

    Non-digits and leading zeros are stripped; bare 10-digit numbers get
    ``country_code`` prepended. Returns None when the result is not 8-15
    digits long. Applying it twice gives the same result.
    """
    if value is None:
        return None

    text = str(value).strip()
    if not text:
        return None

    digits = _NON_DIGITS.sub("", text)
    # Copied numbers often carry a trunk 0 prefix
    digits = digits.lstrip("0")
    if not digits:
        return None

    if len(digits) == 10:
        digits = f"{country_code}{digits}"

    if len(digits) < 8 or len(digits) > 15:
        return None

    return digits


def format_phone_with_country_code(value: Any, country_code: str = DEFAULT_COUNTRY_CODE) -> Optional[str]:
    normalized = normalize_phone_number(value, country_code)
    if not normalized:
        return None
    return f"+{normalized}"


def format_phone_for_display(value: Any, country_code: str = DEFAULT_COUNTRY_CODE) -> Optional[str]:
    """Normalized number without the default country code, for local display."""
    normalized = normalize_phone_number(value, country_code)
    if not normalized:
        return None
    if normalized.startswith(country_code) and len(normalized) == len(country_code) + 10:
        return normalized[len(country_code):]
    return normalized


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp into a timezone-aware datetime.

    Accepts datetimes, dates and strings (ISO 8601 with or without offset,
    plus the plain date formats in ``_DATE_FORMATS``). Naive values are
    taken as UTC. Returns None for empty or unparseable input.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    s = str(value).strip()
    if not s or s.lower() in ("null", "none"):
        return None

    iso = s[:-1] + "+00:00" if s.endswith("Z") else s
    try:
        parsed = datetime.fromisoformat(iso)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except ValueError:
        pass

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    logger.debug(f"Could not parse timestamp: {s}")
    return None


def parse_due_date(value: Any) -> Optional[date]:
    """Parse a due date; timestamps are truncated to their date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_timestamp(value)
    return parsed.date() if parsed else None


def sort_timestamp(value: Optional[datetime]) -> float:
    """Epoch seconds for sorting; missing timestamps sort as epoch 0."""
    if value is None:
        return 0.0
    return value.timestamp()


def normalize_type(value: Any) -> str:
    """Lower-cased, stripped transaction type ('' when missing)."""
    if value is None:
        return ""
    return str(value).strip().lower()


def is_payment(entry_type: Any) -> bool:
    return normalize_type(entry_type) == PAYMENT_TYPE


def first_text(*values: Any) -> Optional[str]:
    """First non-empty string among values (stripped)."""
    for value in values:
        if value is None or isinstance(value, (dict, list)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None
