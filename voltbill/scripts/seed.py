"""Seed the database with demo bills for local development.

Usage:
    python -m voltbill.scripts.seed
"""

from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from faker import Faker
from rich.console import Console
from rich.table import Table
from sqlalchemy import text

from voltbill.constants import today
from voltbill.db import get_connection, initialize_db
from voltbill.models import format_inr
from voltbill.models.bill import BillDraft, BillItem
from voltbill.repositories.factory import get_bill_repository
from voltbill.services.bill_service import BillService

console = Console()
fake = Faker("en_IN")

NUM_BILLS = 25

TABLES_TO_CLEAR = [
    "bill_items",
    "bills",
    "bill_number_sequences",
]

# (description, unit, rate)
WORK_CATALOG = [
    ("Wiring installation", "m", Decimal("45.00")),
    ("MCB replacement", "pcs", Decimal("350.00")),
    ("Ceiling fan fitting", "pcs", Decimal("250.00")),
    ("Switchboard repair", "pcs", Decimal("180.00")),
    ("Earthing work", "pcs", Decimal("1200.00")),
    ("LED panel installation", "pcs", Decimal("150.00")),
    ("CPVC pipe laying", "m", Decimal("85.00")),
    ("Tap and mixer fitting", "pcs", Decimal("220.00")),
    ("Water tank cleaning", "pcs", Decimal("900.00")),
    ("Drain line unclogging", "hrs", Decimal("400.00")),
    ("Motor pump servicing", "pcs", Decimal("750.00")),
    ("Labour charges", "hrs", Decimal("300.00")),
]

BILL_NOTES = [
    "",
    "",
    "Payment due within 7 days.",
    "Materials supplied by client.",
    "",
    "Warranty: 6 months on workmanship.",
    "",
]


def _clear_all(conn) -> None:
    console.print("\n[yellow]Clearing bill tables...[/yellow]")
    for table in TABLES_TO_CLEAR:
        conn.execute(text(f"DELETE FROM {table}"))  # noqa: S608
        console.print(f"  Cleared [dim]{table}[/dim]")
    conn.commit()
    console.print("[green]All bill tables cleared.[/green]\n")


def _random_items() -> list[BillItem]:
    items = []
    for description, unit, rate in random.sample(WORK_CATALOG, k=random.randint(1, 5)):
        quantity = Decimal(random.randint(1, 20))
        if unit == "hrs":
            quantity = quantity / 2
        items.append(
            BillItem(
                description=description,
                quantity=quantity,
                unit=unit,
                rate=rate,
                amount=quantity * rate,
            )
        )
    return items


def _random_draft() -> BillDraft:
    return BillDraft(
        client_name=fake.name(),
        client_phone=fake.msisdn()[3:] if random.random() < 0.8 else "",
        client_address=fake.address().replace("\n", ", ") if random.random() < 0.7 else "",
        bill_date=today() - timedelta(days=random.randint(0, 180)),
        notes=random.choice(BILL_NOTES),
        items=_random_items(),
    )


def seed(num_bills: int = NUM_BILLS) -> list:
    initialize_db()
    conn = get_connection()
    _clear_all(conn)

    bill_service = BillService(get_bill_repository())

    console.print("[cyan]Creating bills...[/cyan]")
    bills = [bill_service.create_bill(_random_draft()) for _ in range(num_bills)]

    table = Table(title="Seeded Bills")
    table.add_column("Bill No")
    table.add_column("Client")
    table.add_column("Items", justify="right")
    table.add_column("Total", justify="right")
    for bill in bills:
        table.add_row(bill.bill_number, bill.client_name, str(len(bill.items)), format_inr(bill.total_amount))
    console.print(table)
    console.print(f"[green]{len(bills)} bills created.[/green]")
    return bills


if __name__ == "__main__":
    seed()
