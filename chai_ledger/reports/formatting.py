"""Cell formatting shared by all report sections."""
from __future__ import annotations
import re
from datetime import date, datetime
from typing import Any, Union

from ..parsers.base import to_finite_number

PLACEHOLDER = "-"

_SHEET_NAME_FORBIDDEN = re.compile(r"[/?*\[\]:\\]")


def as_report_number(value: Any) -> Union[float, str]:
    """Round to 2 decimals; missing or non-finite values become an empty cell."""
    number = to_finite_number(value)
    if number is None:
        return ""
    return float(round(number, 2))


def format_readable_date(value: Union[date, datetime, None]) -> str:
    """``Jan 5, 2024`` style, or the placeholder when missing."""
    if value is None:
        return PLACEHOLDER
    return f"{value:%b} {value.day}, {value.year}"


def sanitize_sheet_name(value: str) -> str:
    """Strip characters spreadsheet tabs reject and cut to 28 characters."""
    cleaned = _SHEET_NAME_FORBIDDEN.sub("", value or "")[:28]
    return cleaned or "Sheet"
