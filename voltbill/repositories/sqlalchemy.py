from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Connection, text
from sqlalchemy.engine import RowMapping
from ulid import ULID

from voltbill.constants import IN_TZ
from voltbill.models.bill import Bill, BillItem
from voltbill.repositories.base import BillRepository
from voltbill.settings import settings


def _now() -> datetime:
    return datetime.now(IN_TZ)


def _num(value: Decimal) -> str:
    # Decimals are bound as text; SQLite's driver cannot bind Decimal
    return str(value)


def _dec(value: object) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


class SQLAlchemyBillRepository(BillRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Commit the statements run inside the block, or roll all of them back."""
        try:
            yield
        except Exception:
            self.conn.rollback()
            raise
        self.conn.commit()

    def _insert_items(self, bill_id: int, items: list[BillItem], now: datetime) -> Decimal:
        total = Decimal("0")
        for i, item in enumerate(items):
            self.conn.execute(
                text(
                    "INSERT INTO bill_items (bill_id, description, quantity, unit, rate, amount, "
                    "item_order, created_at) "
                    "VALUES (:bill_id, :description, :quantity, :unit, :rate, :amount, :item_order, :created_at)"
                ),
                {
                    "bill_id": bill_id,
                    "description": item.description,
                    "quantity": _num(item.quantity),
                    "unit": item.unit,
                    "rate": _num(item.rate),
                    "amount": _num(item.amount),
                    "item_order": i,
                    "created_at": now,
                },
            )
            total += item.amount
        return total

    def create(self, bill: Bill) -> Bill:
        bill_uuid = str(ULID())
        now = _now()
        with self._transaction():
            result = self.conn.execute(
                text(
                    "INSERT INTO bills (uuid, bill_number, client_name, client_phone, client_address, "
                    "bill_date, notes, total_amount, created_at, updated_at) "
                    "VALUES (:uuid, :bill_number, :client_name, :client_phone, :client_address, "
                    ":bill_date, :notes, :total_amount, :created_at, :updated_at)"
                ),
                {
                    "uuid": bill_uuid,
                    "bill_number": bill.bill_number,
                    "client_name": bill.client_name,
                    "client_phone": bill.client_phone,
                    "client_address": bill.client_address,
                    "bill_date": bill.bill_date.isoformat(),
                    "notes": bill.notes,
                    "total_amount": _num(sum((item.amount for item in bill.items), Decimal("0"))),
                    "created_at": now,
                    "updated_at": now,
                },
            )
            bill_id = result.lastrowid
            self._insert_items(bill_id, bill.items, now)
        created = self.get_by_id(bill_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve bill after create (id={bill_id})")
        return created

    @staticmethod
    def _row_to_item(row: RowMapping) -> BillItem:
        return BillItem(
            id=row["id"],
            bill_id=row["bill_id"],
            description=row["description"],
            quantity=_dec(row["quantity"]),
            unit=row["unit"],
            rate=_dec(row["rate"]),
            amount=_dec(row["amount"]),
            item_order=row["item_order"],
            created_at=row["created_at"],
        )

    @staticmethod
    def _build_bill(row: RowMapping, items: list[BillItem]) -> Bill:
        return Bill(
            id=row["id"],
            uuid=row["uuid"],
            bill_number=row["bill_number"],
            client_name=row["client_name"],
            client_phone=row["client_phone"] or "",
            client_address=row["client_address"] or "",
            bill_date=row["bill_date"],
            notes=row["notes"] or "",
            total_amount=_dec(row["total_amount"]),
            items=items,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def list_items(self, bill_id: int) -> list[BillItem]:
        rows = (
            self.conn.execute(
                text("SELECT * FROM bill_items WHERE bill_id = :bill_id ORDER BY item_order"),
                {"bill_id": bill_id},
            )
            .mappings()
            .fetchall()
        )
        return [self._row_to_item(row) for row in rows]

    def get_by_id(self, bill_id: int) -> Bill | None:
        row = (
            self.conn.execute(
                text("SELECT * FROM bills WHERE id = :id"),
                {"id": bill_id},
            )
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._build_bill(row, self.list_items(row["id"]))

    def get_by_uuid(self, uuid: str) -> Bill | None:
        row = (
            self.conn.execute(
                text("SELECT * FROM bills WHERE uuid = :uuid"),
                {"uuid": uuid},
            )
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._build_bill(row, self.list_items(row["id"]))

    def list_all(self) -> list[Bill]:
        rows = (
            self.conn.execute(text("SELECT * FROM bills ORDER BY bill_date DESC, id DESC"))
            .mappings()
            .fetchall()
        )
        return [self._build_bill(row, []) for row in rows]

    def update(self, bill: Bill) -> bool:
        if bill.id is None:
            raise ValueError("Cannot update bill without an id")
        with self._transaction():
            result = self.conn.execute(
                text(
                    "UPDATE bills SET client_name = :client_name, client_phone = :client_phone, "
                    "client_address = :client_address, bill_date = :bill_date, notes = :notes, "
                    "updated_at = :updated_at WHERE id = :id"
                ),
                {
                    "client_name": bill.client_name,
                    "client_phone": bill.client_phone,
                    "client_address": bill.client_address,
                    "bill_date": bill.bill_date.isoformat(),
                    "notes": bill.notes,
                    "updated_at": _now(),
                    "id": bill.id,
                },
            )
        return result.rowcount > 0

    def _replace_items(self, bill_id: int, items: list[BillItem], now: datetime) -> None:
        self.conn.execute(
            text("DELETE FROM bill_items WHERE bill_id = :bill_id"),
            {"bill_id": bill_id},
        )
        total = self._insert_items(bill_id, items, now)
        self.conn.execute(
            text("UPDATE bills SET total_amount = :total_amount, updated_at = :updated_at WHERE id = :id"),
            {"total_amount": _num(total), "updated_at": now, "id": bill_id},
        )

    def replace_items(self, bill_id: int, items: list[BillItem]) -> None:
        with self._transaction():
            self._replace_items(bill_id, items, _now())

    def save_snapshot(self, bill: Bill) -> Bill:
        if bill.id is None:
            raise ValueError("Cannot save bill without an id")
        now = _now()
        with self._transaction():
            result = self.conn.execute(
                text(
                    "UPDATE bills SET client_name = :client_name, client_phone = :client_phone, "
                    "client_address = :client_address, bill_date = :bill_date, notes = :notes, "
                    "updated_at = :updated_at WHERE id = :id"
                ),
                {
                    "client_name": bill.client_name,
                    "client_phone": bill.client_phone,
                    "client_address": bill.client_address,
                    "bill_date": bill.bill_date.isoformat(),
                    "notes": bill.notes,
                    "updated_at": now,
                    "id": bill.id,
                },
            )
            if result.rowcount == 0:
                raise LookupError(f"Bill not found (id={bill.id})")
            self._replace_items(bill.id, bill.items, now)
        saved = self.get_by_id(bill.id)
        if saved is None:
            raise RuntimeError(f"Failed to retrieve bill after update (id={bill.id})")
        return saved

    def delete(self, bill_id: int) -> None:
        with self._transaction():
            self.conn.execute(
                text("DELETE FROM bill_items WHERE bill_id = :bill_id"),
                {"bill_id": bill_id},
            )
            self.conn.execute(
                text("DELETE FROM bills WHERE id = :id"),
                {"id": bill_id},
            )

    def generate_bill_number(self) -> str:
        year = _now().year
        with self._transaction():
            result = self.conn.execute(
                text("UPDATE bill_number_sequences SET last_value = last_value + 1 WHERE year = :year"),
                {"year": year},
            )
            if result.rowcount == 0:
                self.conn.execute(
                    text("INSERT INTO bill_number_sequences (year, last_value) VALUES (:year, 1)"),
                    {"year": year},
                )
            value = self.conn.execute(
                text("SELECT last_value FROM bill_number_sequences WHERE year = :year"),
                {"year": year},
            ).scalar()
        if not value:
            return ""
        return f"{settings.bill_number_prefix}-{year}-{int(value):04d}"
