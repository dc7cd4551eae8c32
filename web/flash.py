from __future__ import annotations

from starlette.requests import Request

SESSION_KEY = "_flash"
CATEGORIES = {"success", "danger", "warning", "info"}


def flash(request: Request, message: str, category: str = "info") -> None:
    """Queue a notice for the next rendered page; unknown categories become 'info'."""
    if category not in CATEGORIES:
        category = "info"
    request.session.setdefault(SESSION_KEY, []).append({"message": message, "category": category})


def get_flashed_messages(request: Request) -> list[dict[str, str]]:
    return request.session.pop(SESSION_KEY, [])
