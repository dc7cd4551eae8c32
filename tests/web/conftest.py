"""Web test fixtures: TestClient with a shared in-memory SQLite."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine, event, text
from sqlalchemy.pool import StaticPool

from voltbill.models.bill import BillDraft
from voltbill.repositories.sqlalchemy import SQLAlchemyBillRepository
from voltbill.services.bill_service import BillService
from tests.conftest import SCHEMA_DDL, make_item


def _make_test_engine():
    """Create a fresh in-memory SQLite engine with shared connection pool."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    with engine.connect() as conn:
        for statement in SCHEMA_DDL.strip().split(";"):
            stmt = statement.strip()
            if stmt:
                conn.execute(text(stmt))
        conn.commit()

    return engine


def create_bill_in_db(engine, **overrides):
    """Create a bill in the test DB. Shared helper for web route tests."""
    defaults = dict(
        client_name="Ravi Kumar",
        client_phone="9876543210",
        items=[make_item("Wiring installation", "2", "45", unit="m")],
    )
    defaults.update(overrides)
    with engine.connect() as conn:
        return BillService(SQLAlchemyBillRepository(conn)).create_bill(BillDraft(**defaults))


def get_bill_from_db(engine, bill_uuid):
    with engine.connect() as conn:
        return SQLAlchemyBillRepository(conn).get_by_uuid(bill_uuid)


def bill_form(**overrides) -> dict[str, str]:
    """Form fields for a one-item bill, as the editor page posts them."""
    data = {
        "client_name": "Ravi Kumar",
        "client_phone": "9876543210",
        "client_address": "",
        "bill_date": "2024-05-01",
        "notes": "",
        "items-TOTAL_FORMS": "1",
        "items-0-description": "Wiring installation",
        "items-0-quantity": "2",
        "items-0-unit": "m",
        "items-0-rate": "45",
        "action": "save",
    }
    data.update(overrides)
    return data


@pytest.fixture(autouse=True)
def web_test_db(monkeypatch):
    """Set up in-memory DB and patch the web app to use it."""
    engine = _make_test_engine()

    import web.deps as deps_module

    monkeypatch.setattr(deps_module, "get_engine", lambda: engine)

    import web.app as app_module

    monkeypatch.setattr(app_module, "initialize_db", lambda: None)

    yield engine

    engine.dispose()


@pytest.fixture()
def test_engine(web_test_db):
    return web_test_db


@pytest.fixture()
def client():
    from starlette.testclient import TestClient

    from web.app import app

    return TestClient(app)
