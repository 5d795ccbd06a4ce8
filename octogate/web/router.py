"""Web routes for Jinja2 templates."""

from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from octogate.auth import get_optional_account, require_account
from octogate.constants import FAILURE_MESSAGE_MAX_LENGTH, HOME_PATH
from octogate.models.account import Account
from octogate.web.context import get_base_context

web_router = APIRouter()
templates = Jinja2Templates(directory=Path(__file__).parent / "templates")


@web_router.get("/login", response_class=HTMLResponse, response_model=None)
async def login_page(
    request: Request,
    account: Annotated[Account | None, Depends(get_optional_account)],
) -> HTMLResponse | RedirectResponse:
    """Render login page."""
    if account:
        return RedirectResponse(url=HOME_PATH, status_code=302)

    context = get_base_context(request)
    return templates.TemplateResponse(request, "auth/login.html", context)


@web_router.get("/auth/failure", response_class=HTMLResponse)
async def failure_page(
    request: Request,
    message: Annotated[str, Query(max_length=FAILURE_MESSAGE_MAX_LENGTH)] = "Authentication failed",
) -> HTMLResponse:
    """Render the failed-login page."""
    context = get_base_context(request)
    context["message"] = message
    return templates.TemplateResponse(request, "auth/failure.html", context)


@web_router.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    account: Annotated[Account, Depends(require_account)],
) -> HTMLResponse:
    """Render the signed-in home page."""
    context = get_base_context(request, account)
    return templates.TemplateResponse(request, "home.html", context)
