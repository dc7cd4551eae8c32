from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from voltbill.services.bill_editor import BillEditor
from web.forms import apply_bill_form, parse_amount, parse_formset


class TestParseAmount:
    def test_number(self):
        assert parse_amount("2.5") == Decimal("2.5")

    def test_blank_is_zero(self):
        assert parse_amount("") == Decimal("0")

    def test_whitespace_is_zero(self):
        assert parse_amount("  ") == Decimal("0")

    def test_garbage_is_none(self):
        assert parse_amount("abc") is None

    def test_out_of_range_is_none(self):
        assert parse_amount("1e30") is None


class TestParseFormset:
    def test_basic_parsing(self):
        form_data = {
            "items-TOTAL_FORMS": "2",
            "items-0-description": "Wiring",
            "items-0-rate": "45",
            "items-1-description": "Fan",
            "items-1-rate": "250",
        }
        rows = parse_formset(form_data, "items")
        assert len(rows) == 2
        assert rows[0]["description"] == "Wiring"
        assert rows[1]["rate"] == "250"

    def test_empty_formset(self):
        assert parse_formset({"items-TOTAL_FORMS": "0"}, "items") == []

    def test_missing_total_forms(self):
        assert parse_formset({}, "items") == []

    def test_bad_total_forms(self):
        assert parse_formset({"items-TOTAL_FORMS": "many"}, "items") == []

    def test_skips_empty_rows(self):
        form_data = {"items-TOTAL_FORMS": "2", "items-0-description": "Wiring"}
        assert len(parse_formset(form_data, "items")) == 1

    def test_ignores_rows_beyond_total(self):
        form_data = {"items-TOTAL_FORMS": "1", "items-0-description": "A", "items-1-description": "B"}
        assert [r["description"] for r in parse_formset(form_data, "items")] == ["A"]


class TestApplyBillForm:
    def _form(self, **overrides):
        data = {
            "client_name": "Ravi Kumar",
            "client_phone": " 98765 ",
            "client_address": "Pune",
            "bill_date": "2024-05-01",
            "notes": "Thanks",
            "items-TOTAL_FORMS": "2",
            "items-0-description": "Wiring",
            "items-0-quantity": "2.5",
            "items-0-unit": "m",
            "items-0-rate": "100",
            "items-1-description": "Fan",
            "items-1-quantity": "",
            "items-1-unit": "pcs",
            "items-1-rate": "250",
        }
        data.update(overrides)
        return data

    def test_fills_draft(self):
        editor = BillEditor(MagicMock())
        assert apply_bill_form(editor, self._form()) == []
        draft = editor.draft
        assert draft.client_name == "Ravi Kumar"
        assert draft.client_phone == "98765"
        assert draft.bill_date == date(2024, 5, 1)
        assert [i.description for i in draft.items] == ["Wiring", "Fan"]

    def test_amounts_computed(self):
        editor = BillEditor(MagicMock())
        apply_bill_form(editor, self._form())
        assert editor.items[0].amount == Decimal("250")
        # blank quantity counts as zero
        assert editor.items[1].amount == Decimal("0")
        assert editor.total == Decimal("250")

    def test_invalid_date_reported(self):
        editor = BillEditor(MagicMock())
        errors = apply_bill_form(editor, self._form(bill_date="01/05/2024"))
        assert errors == ["Invalid bill date: 01/05/2024"]

    def test_blank_date_keeps_default(self):
        editor = BillEditor(MagicMock())
        before = editor.draft.bill_date
        apply_bill_form(editor, self._form(bill_date=""))
        assert editor.draft.bill_date == before

    def test_negative_quantity_reported(self):
        editor = BillEditor(MagicMock())
        errors = apply_bill_form(editor, self._form(**{"items-0-quantity": "-2"}))
        assert errors == ["Item 1: Quantity cannot be negative"]

    def test_huge_rate_reported(self):
        editor = BillEditor(MagicMock())
        errors = apply_bill_form(editor, self._form(**{"items-0-rate": "1e30"}))
        assert errors == ["Item 1: Invalid rate: 1e30"]
        assert editor.items[0].amount == Decimal("0")
        assert editor.total == Decimal("0")

    def test_garbage_quantity_reported(self):
        editor = BillEditor(MagicMock())
        errors = apply_bill_form(editor, self._form(**{"items-1-quantity": "two"}))
        assert errors == ["Item 2: Invalid quantity: two"]
        # the rest of the form is still taken
        assert editor.items[0].amount == Decimal("250")

    def test_extra_places_rounded(self):
        editor = BillEditor(MagicMock())
        apply_bill_form(editor, self._form(**{"items-0-quantity": "1.123456789", "items-0-rate": "10.005"}))
        assert editor.items[0].quantity == Decimal("1.123")
        assert editor.items[0].rate == Decimal("10.01")

    def test_no_rows_keeps_items(self):
        editor = BillEditor(MagicMock())
        apply_bill_form(editor, {"client_name": "Ravi"})
        assert len(editor.items) == 1
