from voltbill.repositories.base import BillRepository


def get_bill_repository() -> BillRepository:
    from voltbill.db import get_connection
    from voltbill.repositories.sqlalchemy import SQLAlchemyBillRepository

    return SQLAlchemyBillRepository(get_connection())
