from __future__ import annotations

import logging

from fpdf import FPDF
from fpdf.fonts import FontFace

from voltbill.constants import format_bill_date
from voltbill.models import format_quantity
from voltbill.models.bill import BillDraft
from voltbill.settings import settings

logger = logging.getLogger(__name__)

FONT = "Helvetica"

PRIMARY = (37, 99, 235)
HEADING = (30, 41, 59)
MUTED = (100, 116, 139)
BODY = (71, 85, 105)
BORDER = (226, 232, 240)


def _latin1(value: str) -> str:
    """Core PDF fonts only cover Latin-1; anything else becomes '?'."""
    return value.encode("latin-1", "replace").decode("latin-1")


class InvoicePDF:
    def generate(self, draft: BillDraft, bill_number: str = "") -> bytes:
        pdf = FPDF()
        pdf.set_title(_latin1(f"Bill - {bill_number or 'New Bill'}"))
        pdf.add_page()
        pdf.set_auto_page_break(auto=True, margin=20)

        page_w = pdf.w - pdf.l_margin - pdf.r_margin

        self._draw_header(pdf, page_w)
        self._draw_info(pdf, page_w, draft, bill_number)
        self._draw_table(pdf, draft)

        if draft.notes:
            self._draw_notes(pdf, page_w, draft.notes)

        self._draw_footer(pdf, page_w)

        output = bytes(pdf.output())
        logger.debug(
            "PDF generated: bill=%s items=%d size=%d bytes",
            bill_number or "DRAFT",
            len(draft.items),
            len(output),
        )
        return output

    def _draw_header(self, pdf: FPDF, page_w: float) -> None:
        pdf.set_text_color(*HEADING)
        pdf.set_font(FONT, "B", 22)
        pdf.cell(0, 12, _latin1(settings.business_name), align="C", new_x="LMARGIN", new_y="NEXT")

        pdf.set_font(FONT, "", 10)
        pdf.set_text_color(*MUTED)
        pdf.cell(0, 7, _latin1(settings.business_tagline), align="C", new_x="LMARGIN", new_y="NEXT")

        pdf.ln(4)
        pdf.set_draw_color(*PRIMARY)
        pdf.set_line_width(1)
        y = pdf.get_y()
        pdf.line(pdf.l_margin, y, pdf.l_margin + page_w, y)
        pdf.ln(10)

    def _draw_info(self, pdf: FPDF, page_w: float, draft: BillDraft, bill_number: str) -> None:
        half = page_w / 2
        top = pdf.get_y()

        # Bill To, left column
        pdf.set_font(FONT, "B", 10)
        pdf.set_text_color(*HEADING)
        pdf.cell(half, 6, "BILL TO:", new_x="LMARGIN", new_y="NEXT")
        pdf.set_font(FONT, "B", 11)
        pdf.set_text_color(*BODY)
        pdf.multi_cell(half, 6, _latin1(draft.client_name), new_x="LMARGIN", new_y="NEXT")
        pdf.set_font(FONT, "", 10)
        if draft.client_phone:
            pdf.cell(half, 6, _latin1(f"Phone: {draft.client_phone}"), new_x="LMARGIN", new_y="NEXT")
        if draft.client_address:
            pdf.multi_cell(half, 6, _latin1(f"Address: {draft.client_address}"), new_x="LMARGIN", new_y="NEXT")
        left_bottom = pdf.get_y()

        # Bill Details, right column
        right_x = pdf.l_margin + half
        pdf.set_xy(right_x, top)
        pdf.set_font(FONT, "B", 10)
        pdf.set_text_color(*HEADING)
        pdf.cell(half, 6, "BILL DETAILS:", align="R", new_x="LEFT", new_y="NEXT")
        pdf.set_font(FONT, "", 10)
        pdf.set_text_color(*BODY)
        pdf.cell(half, 6, _latin1(f"Bill No: {bill_number or 'DRAFT'}"), align="R", new_x="LEFT", new_y="NEXT")
        pdf.cell(half, 6, f"Date: {format_bill_date(draft.bill_date)}", align="R", new_x="LEFT", new_y="NEXT")
        right_bottom = pdf.get_y()

        pdf.set_xy(pdf.l_margin, max(left_bottom, right_bottom) + 8)

    def _draw_table(self, pdf: FPDF, draft: BillDraft) -> None:
        pdf.set_font(FONT, "", 10)
        pdf.set_text_color(*BODY)
        pdf.set_draw_color(*BORDER)
        pdf.set_line_width(0.3)
        headings = FontFace(emphasis="BOLD", color=(255, 255, 255), fill_color=PRIMARY)
        with pdf.table(
            col_widths=(10, 40, 15, 10),
            text_align=("LEFT", "LEFT", "RIGHT", "LEFT"),
            headings_style=headings,
            borders_layout="HORIZONTAL_LINES",
            line_height=8,
        ) as table:
            heading = table.row()
            for label in ("Sr.", "Description", "Quantity", "Unit"):
                heading.cell(label)
            for index, item in enumerate(draft.items, start=1):
                row = table.row()
                row.cell(str(index))
                row.cell(_latin1(item.description))
                row.cell(format_quantity(item.quantity))
                row.cell(_latin1(item.unit))
        pdf.ln(6)

    def _draw_notes(self, pdf: FPDF, page_w: float, notes: str) -> None:
        pdf.ln(4)
        x = pdf.l_margin
        y = pdf.get_y()

        pdf.set_x(x + 6)
        pdf.set_font(FONT, "B", 11)
        pdf.set_text_color(*HEADING)
        pdf.cell(page_w - 10, 8, "Notes / Terms & Conditions:", new_x="LMARGIN", new_y="NEXT")
        pdf.set_x(x + 6)
        pdf.set_font(FONT, "", 10)
        pdf.set_text_color(*BODY)
        pdf.multi_cell(page_w - 10, 6, _latin1(notes), new_x="LMARGIN", new_y="NEXT")
        bottom = pdf.get_y() + 3

        # Accent bar left of the text, sized once the text height is known
        pdf.set_fill_color(*PRIMARY)
        pdf.rect(x, y - 3, 1.5, bottom - y + 3, "F")
        pdf.set_y(bottom)

    def _draw_footer(self, pdf: FPDF, page_w: float) -> None:
        pdf.ln(16)
        pdf.set_draw_color(*BORDER)
        pdf.set_line_width(0.3)
        y = pdf.get_y()
        pdf.line(pdf.l_margin, y, pdf.l_margin + page_w, y)
        pdf.ln(6)

        pdf.set_font(FONT, "", 9)
        pdf.set_text_color(*MUTED)
        pdf.cell(0, 5, "Thank you for your business!", align="C", new_x="LMARGIN", new_y="NEXT")
        pdf.cell(0, 5, "This is a computer-generated invoice.", align="C", new_x="LMARGIN", new_y="NEXT")
