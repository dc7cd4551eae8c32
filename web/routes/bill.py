from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import Response

from voltbill.models.bill import Bill, BillDraft
from voltbill.services.bill_editor import BillEditor
from voltbill.services.bill_service import BillService
from web.deps import get_bill_service, render
from web.flash import flash
from web.forms import apply_bill_form

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bills")

LIST_URL = "/bills/"


def _pdf_response(pdf_bytes: bytes, bill_number: str) -> Response:
    filename = f"{bill_number}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


def _render_form(request: Request, editor: BillEditor, errors: list[str] | None = None, status_code: int = 200):
    return render(
        request,
        "bill/form.html",
        {
            "editor": editor,
            "draft": editor.draft,
            "bill": editor.bill,
            "errors": errors or [],
            "can_remove": len(editor.items) > editor.min_items,
        },
        status_code=status_code,
    )


def _load_bill(service: BillService, bill_uuid: str) -> Bill | None:
    bill = service.get_bill_by_uuid(bill_uuid)
    if bill is None:
        logger.warning("Bill not found: uuid=%s", bill_uuid)
    return bill


def _not_found(request: Request) -> RedirectResponse:
    flash(request, "Bill not found.", "danger")
    return RedirectResponse(LIST_URL, status_code=302)


def _parse_remove_index(action: str) -> int | None:
    try:
        return int(action.split(":", 1)[1])
    except (IndexError, ValueError):
        return None


async def _submit(request: Request, editor: BillEditor):
    """Apply the posted form to the editor and act on the pressed button."""
    form = await request.form()
    errors = apply_bill_form(editor, form)
    action = str(form.get("action", "save"))

    if action == "add_item":
        editor.add_item()
        return _render_form(request, editor, errors)

    if action.startswith("remove_item:"):
        index = _parse_remove_index(action)
        if index is None or not 0 <= index < len(editor.items):
            logger.warning("Ignoring remove for bad item index: %r", action)
        elif not editor.remove_item(index):
            errors.append(f"A bill must keep at least {editor.min_items} item(s).")
        return _render_form(request, editor, errors)

    if action != "save":
        # recalculate: redisplay with fresh amounts
        return _render_form(request, editor, errors)

    if errors:
        return _render_form(request, editor, errors, status_code=422)

    result = editor.save()
    if not result.ok:
        status_code = 422 if result.errors else 500
        return _render_form(request, editor, result.errors or [result.message], status_code=status_code)

    flash(request, f"{result.message}.", "success")
    return RedirectResponse(LIST_URL, status_code=302)


@router.get("/")
async def bill_list(request: Request, q: str = ""):
    service = get_bill_service(request)
    try:
        bills = service.search_bills(q)
    except SQLAlchemyError:
        logger.exception("Error fetching bills")
        flash(request, "Failed to load bills.", "danger")
        bills = []
    logger.info("GET /bills/ q=%r returned %d bills", q, len(bills))
    return render(request, "bill/list.html", {"bills": bills, "query": q})


@router.get("/new")
async def bill_create_form(request: Request):
    editor = BillEditor(get_bill_service(request))
    return _render_form(request, editor)


@router.post("/new")
async def bill_create(request: Request):
    logger.info("POST /bills/new")
    editor = BillEditor(get_bill_service(request))
    return await _submit(request, editor)


@router.get("/{bill_uuid}/edit")
async def bill_edit_form(request: Request, bill_uuid: str):
    service = get_bill_service(request)
    bill = _load_bill(service, bill_uuid)
    if bill is None:
        return _not_found(request)
    editor = BillEditor(service, bill)
    editor.load_items()
    return _render_form(request, editor)


@router.post("/{bill_uuid}/edit")
async def bill_edit(request: Request, bill_uuid: str):
    logger.info("POST /bills/%s/edit", bill_uuid)
    service = get_bill_service(request)
    bill = _load_bill(service, bill_uuid)
    if bill is None:
        return _not_found(request)
    return await _submit(request, BillEditor(service, bill))


@router.post("/{bill_uuid}/delete")
async def bill_delete(request: Request, bill_uuid: str):
    logger.info("POST /bills/%s/delete", bill_uuid)
    service = get_bill_service(request)
    bill = _load_bill(service, bill_uuid)
    if bill is None or bill.id is None:
        return _not_found(request)
    try:
        service.delete_bill(bill.id)
    except SQLAlchemyError:
        logger.exception("Error deleting bill %s", bill.id)
        flash(request, "Failed to delete bill.", "danger")
        return RedirectResponse(LIST_URL, status_code=302)
    flash(request, f"Bill {bill.bill_number} deleted.", "success")
    return RedirectResponse(LIST_URL, status_code=302)


@router.get("/{bill_uuid}/print")
async def bill_print(request: Request, bill_uuid: str):
    service = get_bill_service(request)
    bill = _load_bill(service, bill_uuid)
    if bill is None:
        return _not_found(request)
    pdf_bytes = service.export_pdf(BillDraft.from_bill(bill), bill.bill_number)
    return _pdf_response(pdf_bytes, bill.bill_number)


@router.post("/{bill_uuid}/print")
async def bill_print_draft(request: Request, bill_uuid: str):
    """Render whatever is in the edit form right now, saved or not."""
    service = get_bill_service(request)
    bill = _load_bill(service, bill_uuid)
    if bill is None:
        return _not_found(request)
    editor = BillEditor(service, bill)
    apply_bill_form(editor, await request.form())
    return _pdf_response(editor.export_pdf(), bill.bill_number)
