from __future__ import annotations

from collections.abc import Sequence

from voltbill.models.bill import Bill


def bill_matches(bill: Bill, query: str) -> bool:
    """Number and client name match case-insensitively; the lowercased query is matched against the phone as stored."""
    needle = query.lower()
    return needle in bill.bill_number.lower() or needle in bill.client_name.lower() or needle in bill.client_phone


def filter_bills(bills: Sequence[Bill], query: str) -> list[Bill]:
    """Return the bills matching query, keeping their input order.

    A blank query returns every bill.
    """
    if not query or not query.strip():
        return list(bills)
    return [bill for bill in bills if bill_matches(bill, query)]
