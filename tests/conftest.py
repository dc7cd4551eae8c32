"""Root conftest: in-memory SQLite engine and fixtures for the bill schema."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import Connection, create_engine, event, text
from sqlalchemy.engine import Engine

from voltbill.models.bill import Bill, BillItem

# Matches Alembic head: 4c1d9e7a2b30 (initial schema)
SCHEMA_DDL = """
CREATE TABLE bills (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    bill_number VARCHAR(64) NOT NULL UNIQUE,
    client_name TEXT NOT NULL,
    client_phone VARCHAR(32) NOT NULL DEFAULT '',
    client_address TEXT NOT NULL DEFAULT '',
    bill_date DATE NOT NULL,
    notes TEXT NOT NULL DEFAULT '',
    total_amount VARCHAR(40) NOT NULL DEFAULT '0',
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL
);

CREATE INDEX ix_bills_bill_date ON bills (bill_date);

CREATE TABLE bill_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    bill_id INTEGER NOT NULL REFERENCES bills(id) ON DELETE CASCADE,
    description TEXT NOT NULL,
    quantity VARCHAR(40) NOT NULL DEFAULT '1',
    unit VARCHAR(32) NOT NULL DEFAULT 'pcs',
    rate VARCHAR(40) NOT NULL DEFAULT '0',
    amount VARCHAR(40) NOT NULL DEFAULT '0',
    item_order INTEGER NOT NULL DEFAULT 0,
    created_at DATETIME NOT NULL
);

CREATE INDEX ix_bill_items_bill_id ON bill_items (bill_id);

CREATE TABLE bill_number_sequences (
    year INTEGER PRIMARY KEY,
    last_value INTEGER NOT NULL DEFAULT 0
);
"""


def apply_schema(conn: Connection) -> None:
    for statement in SCHEMA_DDL.strip().split(";"):
        stmt = statement.strip()
        if stmt:
            conn.execute(text(stmt))
    conn.commit()


@pytest.fixture()
def db_engine() -> Engine:
    engine = create_engine("sqlite:///:memory:")

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    return engine


@pytest.fixture()
def db_connection(db_engine: Engine) -> Connection:
    conn = db_engine.connect()
    apply_schema(conn)
    yield conn
    conn.close()


def make_item(description: str, quantity: str, rate: str, unit: str = "pcs") -> BillItem:
    q, r = Decimal(quantity), Decimal(rate)
    return BillItem(description=description, quantity=q, unit=unit, rate=r, amount=q * r)


def _sample_bill(**overrides) -> Bill:
    defaults = dict(
        bill_number="BILL-2024-0001",
        client_name="Ravi Kumar",
        client_phone="9876543210",
        client_address="12 MG Road, Pune",
        bill_date=date(2024, 5, 1),
        notes="Payment due within 7 days.",
        items=[
            make_item("Wiring installation", "2.5", "45.00", unit="m"),
            make_item("MCB replacement", "2", "350.00"),
        ],
    )
    defaults.update(overrides)
    return Bill(**defaults)


@pytest.fixture()
def sample_bill():
    return _sample_bill
