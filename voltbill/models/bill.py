from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from voltbill.constants import today
from voltbill.settings import settings


def _default_unit() -> str:
    return settings.default_unit


class BillItem(BaseModel):
    id: int | None = None
    bill_id: int | None = None
    description: str = ""
    quantity: Decimal = Decimal("1")
    unit: str = Field(default_factory=_default_unit)
    rate: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")
    item_order: int = 0
    created_at: datetime | None = None

    @classmethod
    def blank(cls) -> BillItem:
        return cls()


class Bill(BaseModel):
    id: int | None = None
    uuid: str = ""
    bill_number: str = ""
    client_name: str
    client_phone: str = ""
    client_address: str = ""
    bill_date: date = Field(default_factory=today)
    notes: str = ""
    total_amount: Decimal = Decimal("0")
    items: list[BillItem] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BillDraft(BaseModel):
    """Unsaved state of a bill being edited."""

    client_name: str = ""
    client_phone: str = ""
    client_address: str = ""
    bill_date: date = Field(default_factory=today)
    notes: str = ""
    items: list[BillItem] = Field(default_factory=lambda: [BillItem.blank()])

    @classmethod
    def from_bill(cls, bill: Bill) -> BillDraft:
        draft = cls(
            client_name=bill.client_name,
            client_phone=bill.client_phone,
            client_address=bill.client_address,
            bill_date=bill.bill_date,
            notes=bill.notes,
        )
        if bill.items:
            draft.items = [item.model_copy() for item in bill.items]
        return draft

    @property
    def total(self) -> Decimal:
        return sum((item.amount for item in self.items), Decimal("0"))
