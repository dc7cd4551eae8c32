from abc import ABC, abstractmethod

from voltbill.models.bill import Bill, BillItem


class BillRepository(ABC):
    @abstractmethod
    def create(self, bill: Bill) -> Bill: ...

    @abstractmethod
    def get_by_id(self, bill_id: int) -> Bill | None: ...

    @abstractmethod
    def get_by_uuid(self, uuid: str) -> Bill | None: ...

    @abstractmethod
    def list_all(self) -> list[Bill]: ...

    @abstractmethod
    def list_items(self, bill_id: int) -> list[BillItem]: ...

    @abstractmethod
    def update(self, bill: Bill) -> bool: ...

    @abstractmethod
    def replace_items(self, bill_id: int, items: list[BillItem]) -> None: ...

    @abstractmethod
    def save_snapshot(self, bill: Bill) -> Bill: ...

    @abstractmethod
    def delete(self, bill_id: int) -> None: ...

    @abstractmethod
    def generate_bill_number(self) -> str: ...
