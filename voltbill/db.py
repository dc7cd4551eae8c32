import logging
import os

from alembic.config import Config
from sqlalchemy import Connection, create_engine, event
from sqlalchemy.engine import Engine

from alembic import command
from voltbill.settings import settings

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_connection: Connection | None = None


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE on bill_items unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        url = settings.db_url
        if _is_sqlite(url):
            _engine = create_engine(url)
            event.listen(_engine, "connect", _enable_foreign_keys)
        else:
            _engine = create_engine(url, pool_pre_ping=True, pool_recycle=1800)
        logger.info("Database engine created (dialect=%s)", _engine.dialect.name)
    return _engine


def get_connection() -> Connection:
    """Return the process-wide connection used by the terminal app.

    Web requests get their own connection from DBConnectionMiddleware.
    """
    global _connection
    if _connection is None:
        _connection = get_engine().connect()
        logger.debug("CLI DB connection opened")
    return _connection


def close_connection() -> None:
    global _connection
    if _connection is not None:
        _connection.close()
        _connection = None
        logger.debug("CLI DB connection closed")


def _get_alembic_config() -> Config:
    """Locate alembic.ini next to the package, or in the working directory."""
    project_root = os.path.dirname(os.path.dirname(__file__))
    ini_path = os.path.join(project_root, "alembic.ini")
    if not os.path.exists(ini_path):
        ini_path = os.path.join(os.getcwd(), "alembic.ini")
    cfg = Config(ini_path)
    cfg.set_main_option("script_location", os.path.join(os.path.dirname(ini_path), "alembic"))
    return cfg


def initialize_db() -> None:
    """Bring the bill schema up to the latest migration."""
    logger.info("Applying migrations")
    command.upgrade(_get_alembic_config(), "head")
    logger.info("Database schema is up to date")
