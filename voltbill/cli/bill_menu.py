from __future__ import annotations

import logging
import webbrowser
from datetime import date

import questionary
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from voltbill.constants import format_bill_date, format_list_date
from voltbill.models import format_inr, format_quantity, parse_decimal
from voltbill.models.bill import Bill, BillDraft
from voltbill.services.bill_editor import BillEditor
from voltbill.services.bill_service import BillService
from voltbill.settings import settings

logger = logging.getLogger(__name__)

console = Console()

BACK = "Back"


def _money(amount) -> str:
    return format_inr(amount, settings.currency_symbol)


def _show_items(draft: BillDraft) -> None:
    """Display a draft's line items and running total."""
    table = Table()
    table.add_column("Sr.", style="dim")
    table.add_column("Description")
    table.add_column("Qty", justify="right")
    table.add_column("Unit")
    table.add_column("Rate", justify="right")
    table.add_column("Amount", justify="right")

    for i, item in enumerate(draft.items, start=1):
        table.add_row(
            str(i),
            item.description or "[dim](no description)[/dim]",
            format_quantity(item.quantity),
            item.unit,
            _money(item.rate),
            _money(item.amount),
        )

    console.print(table)
    console.print(f"  [bold]Total: {_money(draft.total)}[/bold]")


def _show_bill_detail(bill: Bill) -> None:
    console.print(f"  Client: [bold]{bill.client_name}[/bold]")
    if bill.client_phone:
        console.print(f"  Phone: {bill.client_phone}")
    if bill.client_address:
        console.print(f"  Address: {bill.client_address}")
    console.print(f"  Date: {format_bill_date(bill.bill_date)}")
    _show_items(BillDraft.from_bill(bill))
    if bill.notes:
        console.print(f"  Notes: {bill.notes}")


def _prompt_decimal(label: str, default: str):
    while True:
        val = questionary.text(label, default=default).ask()
        parsed = parse_decimal(val or "")
        if parsed is not None and parsed >= 0:
            return parsed
        console.print("[red]Invalid number. Try again.[/red]")


def _prompt_date(default: date) -> date:
    while True:
        val = questionary.text("Bill date (YYYY-MM-DD):", default=default.isoformat()).ask()
        if not val:
            return default
        try:
            return date.fromisoformat(val.strip())
        except ValueError:
            console.print("[red]Invalid date. Use YYYY-MM-DD (e.g. 2024-05-01).[/red]")


def _prompt_client(editor: BillEditor) -> None:
    draft = editor.draft
    draft.client_name = questionary.text("Client name *:", default=draft.client_name).ask() or ""
    draft.client_phone = questionary.text("Client phone:", default=draft.client_phone).ask() or ""
    draft.client_address = questionary.text("Client address:", default=draft.client_address).ask() or ""
    draft.bill_date = _prompt_date(draft.bill_date)
    draft.notes = questionary.text("Notes / Terms & Conditions:", default=draft.notes).ask() or ""


def _prompt_item(editor: BillEditor, index: int) -> None:
    item = editor.items[index]
    description = questionary.text("  Description *:", default=item.description).ask() or ""
    editor.update_item(index, "description", description)
    quantity = _prompt_decimal("  Quantity:", format_quantity(item.quantity))
    editor.update_item(index, "quantity", quantity)
    unit = questionary.text("  Unit (pcs, m, hrs):", default=item.unit).ask() or ""
    editor.update_item(index, "unit", unit)
    rate = _prompt_decimal("  Rate:", str(item.rate))
    updated = editor.update_item(index, "rate", rate)
    console.print(f"  [green]Amount: {_money(updated.amount)}[/green]")


def _choose_item(editor: BillEditor, prompt: str) -> int | None:
    choices = {f"{i}. {item.description or '(no description)'}": i - 1 for i, item in enumerate(editor.items, start=1)}
    choice = questionary.select(prompt, choices=list(choices.keys()) + [BACK]).ask()
    if choice is None or choice == BACK:
        return None
    return choices[choice]


def edit_bill_menu(bill_service: BillService, bill: Bill | None = None) -> Bill | None:
    """Run the editor loop for a new bill, or an existing one when given.

    Returns the saved bill, or None when the user cancels.
    """
    editor = BillEditor(bill_service, bill)
    editor.load_items()

    console.print()
    title = "Create New Bill" if bill is None else f"Edit Bill - {bill.bill_number}"
    console.print(f"[bold]{title}[/bold]", style="cyan")

    if bill is None:
        _prompt_client(editor)
        _prompt_item(editor, 0)

    while True:
        console.print()
        console.print(f"  Client: [bold]{editor.draft.client_name or '-'}[/bold]")
        _show_items(editor.draft)
        console.print()

        action = questionary.select(
            "Actions:",
            choices=[
                "Edit Client Details",
                "Add Item",
                "Edit Item",
                "Remove Item",
                "Save Bill" if bill is None else "Update Bill",
                "Cancel",
            ],
        ).ask()

        if action is None or action == "Cancel":
            return None
        elif action == "Edit Client Details":
            _prompt_client(editor)
        elif action == "Add Item":
            editor.add_item()
            _prompt_item(editor, len(editor.items) - 1)
        elif action == "Edit Item":
            index = _choose_item(editor, "Select an item to edit:")
            if index is not None:
                _prompt_item(editor, index)
        elif action == "Remove Item":
            index = _choose_item(editor, "Select an item to remove:")
            if index is not None and not editor.remove_item(index):
                console.print(f"[yellow]A bill must keep at least {editor.min_items} item(s).[/yellow]")
        elif action in ("Save Bill", "Update Bill"):
            result = editor.save()
            if result.ok:
                console.print(f"[green bold]{result.message}![/green bold]")
                if result.bill is not None:
                    console.print(f"  Bill No: [bold]{result.bill.bill_number}[/bold]")
                    console.print(f"  Total: [bold]{_money(result.bill.total_amount)}[/bold]")
                return result.bill
            for message in result.errors or [result.message]:
                console.print(f"[red]{message}[/red]")


def _export_bill(bill: Bill, bill_service: BillService) -> None:
    try:
        pdf_bytes = bill_service.export_pdf(BillDraft.from_bill(bill), bill.bill_number)
        url = bill_service.store_export(bill.uuid, pdf_bytes)
    except OSError:
        logger.exception("Error exporting bill %s", bill.id)
        console.print("[red]Failed to export PDF.[/red]")
        return
    console.print("[green]PDF exported![/green]")
    console.print(f"  File: {url}")
    # The system viewer takes it from here, including printing or saving elsewhere
    if not webbrowser.open(url):
        console.print("[yellow]Could not open a viewer; open the file above to print it.[/yellow]")


def _bill_detail_menu(bill: Bill, bill_service: BillService) -> None:
    while True:
        console.print()
        console.print(f"[bold cyan]Bill {bill.bill_number}[/bold cyan]")
        _show_bill_detail(bill)
        console.print()

        action = questionary.select(
            "Actions:",
            choices=["Edit Bill", "Export PDF", "Delete Bill", BACK],
        ).ask()

        if action is None or action == BACK:
            break
        elif action == "Edit Bill":
            saved = edit_bill_menu(bill_service, bill)
            if saved is not None:
                bill = saved
        elif action == "Export PDF":
            _export_bill(bill, bill_service)
        elif action == "Delete Bill":
            confirm = questionary.confirm(
                f"Are you sure you want to delete bill {bill.bill_number}? This action cannot be undone.",
                default=False,
            ).ask()
            if not confirm:
                continue
            if bill.id is None:
                console.print("[red]Invalid bill.[/red]")
                break
            try:
                bill_service.delete_bill(bill.id)
            except SQLAlchemyError:
                logger.exception("Error deleting bill %s", bill.id)
                console.print("[red]Failed to delete bill.[/red]")
                continue
            console.print("[green]Bill deleted.[/green]")
            break


def list_bills_menu(bill_service: BillService, query: str = "") -> None:
    while True:
        try:
            bills = bill_service.search_bills(query)
        except SQLAlchemyError:
            logger.exception("Error fetching bills")
            console.print("[red]Failed to load bills.[/red]")
            return

        if not bills:
            if query.strip():
                console.print("[yellow]No bills found matching your search.[/yellow]")
            else:
                console.print("[yellow]No bills created yet.[/yellow]")
            return

        title = f"Bills matching '{query}'" if query.strip() else "Recent Bills"
        table = Table(title=title)
        table.add_column("Bill No")
        table.add_column("Date")
        table.add_column("Client")
        table.add_column("Phone", style="dim")
        table.add_column("Total", justify="right")

        for b in bills:
            table.add_row(
                b.bill_number,
                format_list_date(b.bill_date),
                b.client_name,
                b.client_phone or "-",
                _money(b.total_amount),
            )

        console.print()
        console.print(table)

        bill_choices = {f"{b.bill_number} - {b.client_name}": b for b in bills}
        choices = list(bill_choices.keys()) + [BACK]
        choice = questionary.select("Select a bill:", choices=choices).ask()

        if choice is None or choice == BACK:
            return

        selected = bill_choices[choice]
        if selected.id is None:
            continue
        bill = bill_service.get_bill(selected.id)
        if not bill:
            console.print("[red]Bill not found.[/red]")
            continue

        _bill_detail_menu(bill, bill_service)
