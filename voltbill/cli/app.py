import questionary
from rich.console import Console

from voltbill.cli.bill_menu import edit_bill_menu, list_bills_menu
from voltbill.repositories.factory import get_bill_repository
from voltbill.services.bill_service import BillService
from voltbill.storage.factory import get_storage

console = Console()


def _build_services() -> BillService:
    return BillService(get_bill_repository(), get_storage())


def main_menu() -> None:
    bill_service = _build_services()

    console.print()
    console.print("[bold]Electrician Billing System[/bold]", style="cyan")
    console.print("Manage your electrical and pipeline work invoices")
    console.print()

    while True:
        choice = questionary.select(
            "Main Menu",
            choices=[
                "List Bills",
                "Search Bills",
                "Create New Bill",
                "Exit",
            ],
        ).ask()

        if choice is None or choice == "Exit":
            console.print("[bold]Goodbye![/bold]")
            break
        elif choice == "List Bills":
            list_bills_menu(bill_service)
        elif choice == "Search Bills":
            query = questionary.text("Search by bill number, client name, or phone:").ask() or ""
            list_bills_menu(bill_service, query)
        elif choice == "Create New Bill":
            edit_bill_menu(bill_service)
