from __future__ import annotations

import hashlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import HTMLResponse, RedirectResponse

from voltbill.constants import format_bill_date, format_list_date
from voltbill.db import initialize_db
from voltbill.logging import configure_logging, reconfigure
from voltbill.models import format_inr, format_quantity
from voltbill.settings import settings
from web.deps import DBConnectionMiddleware
from web.routes.bill import router as bill_router

configure_logging()
logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).parent


def _build_asset_version() -> str:
    """Hash all static files to produce a short cache-bust token."""
    h = hashlib.md5()
    for f in sorted((BASE_DIR / "static").rglob("*")):
        if f.is_file():
            h.update(f.read_bytes())
    return h.hexdigest()[:10]


ASSET_VERSION = _build_asset_version()


def _money(amount) -> str:
    return format_inr(amount, settings.currency_symbol)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    initialize_db()
    # alembic's fileConfig replaces the root handlers
    reconfigure()
    logger.info("Web app started (db=%s)", settings.db_url.split("://", 1)[0])
    yield


app = FastAPI(docs_url=None, redoc_url=None, lifespan=lifespan)

app.add_middleware(DBConnectionMiddleware)
app.add_middleware(SessionMiddleware, secret_key=settings.get_secret_key())

app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")

templates = Jinja2Templates(directory=BASE_DIR / "templates")
templates.env.globals["format_money"] = _money
templates.env.globals["format_quantity"] = format_quantity
templates.env.globals["format_bill_date"] = format_bill_date
templates.env.globals["format_list_date"] = format_list_date
templates.env.globals["asset_version"] = ASSET_VERSION

app.include_router(bill_router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
    return HTMLResponse("Internal Server Error", status_code=500)


@app.get("/")
async def home(request: Request):
    return RedirectResponse("/bills/", status_code=302)
