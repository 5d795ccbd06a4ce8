"""Template context helpers."""

from typing import Any

from fastapi import Request

from octogate.config import get_settings
from octogate.models.account import Account


def get_base_context(request: Request, account: Account | None = None) -> dict[str, Any]:
    """Get base context for all templates."""
    return {
        "request": request,
        "account": account,
        "app_name": get_settings().app_name,
    }
