from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from decimal import Decimal

from voltbill.constants import AMOUNT_FIELDS
from voltbill.models import parse_decimal
from voltbill.models.bill import BillItem
from voltbill.services.bill_editor import BillEditor

ITEMS_PREFIX = "items"


def parse_amount(text: str) -> Decimal | None:
    """Parse a number typed into the form; blank counts as zero, garbage is None."""
    if not text.strip():
        return Decimal("0")
    return parse_decimal(text)


def parse_formset(form_data: Mapping[str, str], prefix: str) -> list[dict[str, str]]:
    """Parse a Django-style formset from form data.

    Expects keys like:
      {prefix}-TOTAL_FORMS, {prefix}-0-description, {prefix}-0-quantity, etc.

    Returns a list of dicts, one per form row, in row order.
    """
    try:
        total = int(form_data.get(f"{prefix}-TOTAL_FORMS", "0"))
    except ValueError:
        total = 0
    rows: list[dict[str, str]] = []
    for i in range(total):
        row_prefix = f"{prefix}-{i}-"
        row = {key[len(row_prefix):]: str(value) for key, value in form_data.items() if key.startswith(row_prefix)}
        if row:
            rows.append(row)
    return rows


def apply_bill_form(editor: BillEditor, form_data: Mapping[str, str]) -> list[str]:
    """Copy submitted form fields into the editor's draft.

    Returns messages for fields that could not be applied; the rest of the
    form is still taken.
    """
    errors: list[str] = []
    draft = editor.draft
    draft.client_name = str(form_data.get("client_name", ""))
    draft.client_phone = str(form_data.get("client_phone", "")).strip()
    draft.client_address = str(form_data.get("client_address", ""))
    draft.notes = str(form_data.get("notes", ""))

    raw_date = str(form_data.get("bill_date", "")).strip()
    if raw_date:
        try:
            draft.bill_date = date.fromisoformat(raw_date)
        except ValueError:
            errors.append(f"Invalid bill date: {raw_date}")

    rows = parse_formset(form_data, ITEMS_PREFIX)
    if not rows:
        return errors

    draft.items = [BillItem.blank() for _ in rows]
    for i, row in enumerate(rows):
        editor.update_item(i, "description", row.get("description", ""))
        editor.update_item(i, "unit", row.get("unit", "").strip())
        for field in AMOUNT_FIELDS:
            raw = row.get(field, "")
            number = parse_amount(raw)
            if number is None:
                errors.append(f"Item {i + 1}: Invalid {field}: {raw.strip()}")
                continue
            try:
                editor.update_item(i, field, number)
            except ValueError as exc:
                errors.append(f"Item {i + 1}: {exc}")
    return errors
