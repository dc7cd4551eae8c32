from __future__ import annotations

import logging

from fastapi import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

from voltbill.db import get_engine
from voltbill.repositories.sqlalchemy import SQLAlchemyBillRepository
from voltbill.services.bill_service import BillService
from voltbill.settings import settings
from web.flash import get_flashed_messages

logger = logging.getLogger(__name__)


class DBConnectionMiddleware:
    """Pure ASGI middleware that closes the request's DB connection, if one was opened."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        request.state.db_conn = None
        try:
            await self.app(scope, receive, send)
        finally:
            conn = getattr(request.state, "db_conn", None)
            if conn is not None:
                conn.close()
                logger.debug("DB connection closed for %s %s", request.method, request.url.path)


def _get_conn(request: Request):
    if getattr(request.state, "db_conn", None) is None:
        logger.debug("Opening DB connection for %s %s", request.method, request.url.path)
        request.state.db_conn = get_engine().connect()
    return request.state.db_conn


def get_bill_service(request: Request) -> BillService:
    # PDFs are streamed back to the browser, so no export storage here
    return BillService(SQLAlchemyBillRepository(_get_conn(request)))


def render(
    request: Request,
    template_name: str,
    context: dict | None = None,
    status_code: int = 200,
) -> Response:
    from web.app import templates

    logger.debug("Rendering %s (status=%d)", template_name, status_code)
    ctx = context or {}
    ctx["messages"] = get_flashed_messages(request)
    ctx["business_name"] = settings.business_name
    return templates.TemplateResponse(request, template_name, ctx, status_code=status_code)
