"""Sign-in and sign-out endpoints."""

from typing import Annotated
from urllib.parse import urlencode

import httpx
from authlib.integrations.starlette_client import OAuthError
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from octogate.auth import AuthenticationError, oauth
from octogate.auth.oauth import fetch_github_payload
from octogate.auth.resolver import resolve_account
from octogate.auth.session import clear_session, set_current_account
from octogate.config import get_settings
from octogate.constants import FAILURE_MESSAGE_MAX_LENGTH, FAILURE_PATH, HOME_PATH, LOGIN_PATH
from octogate.db import get_db
from octogate.utils.logging import get_logger

router = APIRouter()
settings = get_settings()
logger = get_logger(__name__)


def _failure_redirect(message: str) -> RedirectResponse:
    message = message[:FAILURE_MESSAGE_MAX_LENGTH]
    return RedirectResponse(url=f"{FAILURE_PATH}?{urlencode({'message': message})}", status_code=302)


@router.get("/auth/github")
async def github_login(request: Request) -> RedirectResponse:
    """Initiate GitHub OAuth login."""
    return await oauth.github.authorize_redirect(request, settings.github_callback_url)


@router.get("/auth/github/callback")
async def github_callback(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> RedirectResponse:
    """Handle GitHub OAuth callback.

    The session identity is only written once the account has been stored;
    any failure before that leaves the session untouched.
    """
    try:
        payload = await fetch_github_payload(request)
    except OAuthError as e:
        logger.warning(f"GitHub OAuth exchange failed: {e.error} {e.description or ''}")
        return _failure_redirect(e.description or e.error or "GitHub authorization failed")
    except httpx.HTTPError as e:
        logger.warning(f"GitHub profile request failed: {e}")
        return _failure_redirect("Could not fetch your GitHub profile")
    except AuthenticationError as e:
        logger.warning(f"GitHub login rejected: {e.reason}")
        return _failure_redirect(e.reason)

    try:
        account = await resolve_account(db, payload)
    except AuthenticationError as e:
        logger.warning(f"Account resolution failed for github uid {payload.uid}: {e.reason}")
        return _failure_redirect(e.reason)

    set_current_account(request, account)
    return RedirectResponse(url=HOME_PATH, status_code=302)


@router.api_route("/logout", methods=["GET", "POST"])
async def logout(request: Request) -> RedirectResponse:
    """Log out the current account."""
    clear_session(request)
    return RedirectResponse(url=LOGIN_PATH, status_code=302)
