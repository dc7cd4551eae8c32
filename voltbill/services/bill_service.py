from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from voltbill.constants import IN_TZ
from voltbill.models.bill import Bill, BillDraft, BillItem
from voltbill.pdf.invoice import InvoicePDF
from voltbill.repositories.base import BillRepository
from voltbill.services.search import filter_bills
from voltbill.settings import settings
from voltbill.storage.base import StorageBackend

logger = logging.getLogger(__name__)


def fallback_bill_number(now: datetime | None = None) -> str:
    """Client-side bill number used when the numbering counter is unavailable."""
    now = now or datetime.now(IN_TZ)
    return f"BILL-{now.year}-{int(now.timestamp() * 1000)}"


def _export_key(bill_uuid: str) -> str:
    prefix = settings.storage_prefix
    if prefix:
        return f"{prefix}/{bill_uuid}.pdf"
    return f"{bill_uuid}.pdf"


def _ordered_items(items: list[BillItem]) -> list[BillItem]:
    return [item.model_copy(update={"item_order": i, "id": None, "bill_id": None}) for i, item in enumerate(items)]


class BillService:
    def __init__(self, bill_repo: BillRepository, storage: StorageBackend | None = None) -> None:
        self.bill_repo = bill_repo
        self.storage = storage
        self.pdf_generator = InvoicePDF()

    def list_bills(self) -> list[Bill]:
        result = self.bill_repo.list_all()
        logger.debug("Listed %d bills", len(result))
        return result

    def search_bills(self, query: str) -> list[Bill]:
        result = filter_bills(self.list_bills(), query)
        logger.debug("search_bills query=%r matched=%d", query, len(result))
        return result

    def get_bill(self, bill_id: int) -> Bill | None:
        result = self.bill_repo.get_by_id(bill_id)
        logger.debug("get_bill id=%s found=%s", bill_id, result is not None)
        return result

    def get_bill_by_uuid(self, uuid: str) -> Bill | None:
        result = self.bill_repo.get_by_uuid(uuid)
        logger.debug("get_bill_by_uuid uuid=%s found=%s", uuid, result is not None)
        return result

    def fetch_items(self, bill_id: int) -> list[BillItem]:
        result = self.bill_repo.list_items(bill_id)
        logger.debug("fetch_items bill=%s count=%d", bill_id, len(result))
        return result

    def next_bill_number(self) -> str:
        try:
            number = self.bill_repo.generate_bill_number()
        except SQLAlchemyError:
            logger.warning("Bill number generator failed, using fallback", exc_info=True)
            number = ""
        if not number:
            number = fallback_bill_number()
            logger.info("Fallback bill number issued: %s", number)
        return number

    def create_bill(self, draft: BillDraft) -> Bill:
        items = _ordered_items(draft.items)
        bill = Bill(
            bill_number=self.next_bill_number(),
            client_name=draft.client_name,
            client_phone=draft.client_phone,
            client_address=draft.client_address,
            bill_date=draft.bill_date,
            notes=draft.notes,
            total_amount=draft.total,
            items=items,
        )
        bill = self.bill_repo.create(bill)
        logger.info(
            "Bill created: id=%s, number=%s, client=%s, items=%d, total=%s",
            bill.id,
            bill.bill_number,
            bill.client_name,
            len(bill.items),
            bill.total_amount,
        )
        return bill

    def update_bill(self, bill: Bill, draft: BillDraft) -> Bill:
        if bill.id is None:
            raise ValueError("Cannot update bill without an id")
        snapshot = bill.model_copy(
            update={
                "client_name": draft.client_name,
                "client_phone": draft.client_phone,
                "client_address": draft.client_address,
                "bill_date": draft.bill_date,
                "notes": draft.notes,
                "items": _ordered_items(draft.items),
            }
        )
        updated = self.bill_repo.save_snapshot(snapshot)
        logger.info(
            "Bill updated: id=%s, number=%s, items=%d, total=%s",
            updated.id,
            updated.bill_number,
            len(updated.items),
            updated.total_amount,
        )
        return updated

    def delete_bill(self, bill_id: int) -> None:
        self.bill_repo.delete(bill_id)
        logger.info("Bill %s deleted", bill_id)

    def export_pdf(self, draft: BillDraft, bill_number: str = "") -> bytes:
        return self.pdf_generator.generate(draft, bill_number)

    def store_export(self, bill_uuid: str, pdf_bytes: bytes) -> str:
        """Save an exported PDF and return the location the platform can open."""
        if self.storage is None:
            raise RuntimeError("Storage backend not configured")
        key = _export_key(bill_uuid)
        self.storage.save(key, pdf_bytes)
        url = self.storage.get_url(key)
        logger.info("PDF exported for bill %s at %s", bill_uuid, url)
        return url
