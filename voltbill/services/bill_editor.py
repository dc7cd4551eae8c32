"""Create/edit workflow for a single bill and its line items.

The editor owns a ``BillDraft`` that the terminal menus and the web form
mutate through ``update_item``, ``add_item`` and ``remove_item``.  Nothing
reaches the database until ``save()`` passes validation.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from voltbill.constants import AMOUNT_FIELDS, EDITABLE_ITEM_FIELDS
from voltbill.models import MAX_NUMBER, QUANTITY_STEP, RATE_STEP, parse_decimal
from voltbill.models.bill import Bill, BillDraft, BillItem
from voltbill.services.bill_service import BillService
from voltbill.settings import settings

logger = logging.getLogger(__name__)

SAVE_FAILED = "Failed to save bill"


class SaveResult(BaseModel):
    ok: bool
    message: str
    bill: Bill | None = None
    errors: list[str] = []


def _to_decimal(field: str, value: object) -> Decimal:
    if isinstance(value, Decimal):
        parsed: Decimal | None = value
    elif isinstance(value, str):
        parsed = parse_decimal(value)
    else:
        parsed = parse_decimal(str(value))
    if parsed is None or not parsed.is_finite() or parsed.copy_abs() >= MAX_NUMBER:
        raise ValueError(f"Invalid {field}: {value!r}")
    step = QUANTITY_STEP if field == "quantity" else RATE_STEP
    number = parsed.quantize(step, rounding=ROUND_HALF_UP)
    # Rounding can carry 999999999.9999 over the limit
    if number.copy_abs() >= MAX_NUMBER:
        raise ValueError(f"Invalid {field}: {value!r}")
    return number


class BillEditor:
    def __init__(
        self,
        bill_service: BillService,
        bill: Bill | None = None,
        min_items: int | None = None,
    ) -> None:
        self.bill_service = bill_service
        self.bill = bill
        self.min_items = settings.min_bill_items if min_items is None else min_items
        self.draft = BillDraft.from_bill(bill) if bill is not None else BillDraft()
        self.saving = False
        self._load_generation = 0

    @property
    def is_new(self) -> bool:
        return self.bill is None

    @property
    def items(self) -> list[BillItem]:
        return self.draft.items

    @property
    def total(self) -> Decimal:
        return self.draft.total

    def begin_load(self) -> int:
        """Start an item fetch; only the most recent token may apply its result."""
        self._load_generation += 1
        return self._load_generation

    def apply_loaded_items(self, token: int, items: list[BillItem]) -> bool:
        if token != self._load_generation:
            logger.debug("Discarding stale item load token=%d current=%d", token, self._load_generation)
            return False
        if items:
            self.draft.items = [item.model_copy() for item in items]
        return True

    def load_items(self) -> None:
        """Replace the draft's items with the stored ones for an existing bill."""
        if self.bill is None or self.bill.id is None:
            return
        token = self.begin_load()
        try:
            items = self.bill_service.fetch_items(self.bill.id)
        except SQLAlchemyError:
            logger.exception("Error fetching items for bill %s", self.bill.id)
            return
        self.apply_loaded_items(token, items)

    def update_item(self, index: int, field: str, value: object) -> BillItem:
        if field not in EDITABLE_ITEM_FIELDS:
            raise ValueError(f"Field cannot be edited: {field}")
        item = self.draft.items[index]

        if field in AMOUNT_FIELDS:
            number = _to_decimal(field, value)
            if field == "quantity" and number < 0:
                raise ValueError("Quantity cannot be negative")
            updated = item.model_copy(update={field: number})
            updated.amount = updated.quantity * updated.rate
        else:
            updated = item.model_copy(update={field: str(value)})

        self.draft.items[index] = updated
        return updated

    def add_item(self) -> BillItem:
        item = BillItem.blank()
        self.draft.items.append(item)
        return item

    def remove_item(self, index: int) -> bool:
        if len(self.draft.items) <= self.min_items:
            return False
        del self.draft.items[index]
        return True

    def validate(self) -> list[str]:
        errors: list[str] = []
        if not self.draft.client_name.strip():
            errors.append("Please enter client name")
        if any(not item.description.strip() for item in self.draft.items):
            errors.append("Please fill all item descriptions")
        if len(self.draft.items) < self.min_items:
            errors.append(f"Please add at least {self.min_items} item(s)")
        return errors

    def save(self) -> SaveResult:
        errors = self.validate()
        if errors:
            logger.info("Bill save rejected: %s", "; ".join(errors))
            return SaveResult(ok=False, message=errors[0], errors=errors)

        creating = self.is_new
        self.saving = True
        try:
            if self.bill is None:
                bill = self.bill_service.create_bill(self.draft)
            else:
                bill = self.bill_service.update_bill(self.bill, self.draft)
        except (SQLAlchemyError, LookupError):
            logger.exception("Error saving bill")
            return SaveResult(ok=False, message=SAVE_FAILED)
        finally:
            self.saving = False

        self.bill = bill
        message = "Bill created successfully" if creating else "Bill updated successfully"
        return SaveResult(ok=True, message=message, bill=bill)

    def export_pdf(self) -> bytes:
        """Render the current draft, saved or not."""
        bill_number = self.bill.bill_number if self.bill is not None else ""
        return self.bill_service.export_pdf(self.draft, bill_number)
