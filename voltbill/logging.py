import logging
import sys

from voltbill.settings import settings

TEXT_FORMAT = "%(levelname)s %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Third-party loggers held at WARNING whatever the app level is
QUIET_LOGGERS = ("uvicorn.access", "fpdf", "fontTools")


def _build_formatter(as_json: bool) -> logging.Formatter:
    if as_json:
        from pythonjsonlogger.json import JsonFormatter

        return JsonFormatter(fmt=JSON_FORMAT, rename_fields={"asctime": "timestamp", "levelname": "level"})
    return logging.Formatter(TEXT_FORMAT)


def configure_logging(level: str | None = None) -> None:
    """Point the root logger at stderr using the configured level and format.

    ``level`` overrides ``settings.log_level``; unknown names fall back to INFO.
    """
    name = (level or settings.log_level).upper()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_build_formatter(settings.log_json))

    root = logging.getLogger()
    root.setLevel(getattr(logging, name, logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    for noisy in QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)


# alembic's fileConfig swaps the root handlers, so this runs again after migrations
reconfigure = configure_logging
