from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

IN_TZ = ZoneInfo("Asia/Kolkata")

# Fields of a line item the editor lets the user change
EDITABLE_ITEM_FIELDS = ("description", "quantity", "unit", "rate")
AMOUNT_FIELDS = ("quantity", "rate")


def today() -> date:
    return datetime.now(IN_TZ).date()


def format_bill_date(value: date | None) -> str:
    """Format a bill date for documents: 2024-05-01 -> '01/05/2024'"""
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y")


def format_list_date(value: date | None) -> str:
    """Format a bill date for listings: 2024-05-01 -> 'May 01, 2024'"""
    if value is None:
        return ""
    return value.strftime("%b %d, %Y")
