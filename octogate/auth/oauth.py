"""GitHub OAuth configuration using Authlib."""

from typing import Any

from authlib.integrations.starlette_client import OAuth
from fastapi import Request
from starlette.config import Config

from octogate.auth.errors import MalformedPayloadError
from octogate.auth.resolver import parse_auth_payload
from octogate.config import get_settings
from octogate.constants import (
    GITHUB_API_BASE_URL,
    GITHUB_AUTHORIZE_URL,
    GITHUB_SCOPE,
    GITHUB_TOKEN_URL,
    HTTPX_TIMEOUT,
    PROVIDER_GITHUB,
)
from octogate.models.schemas import AuthPayload

settings = get_settings()

# Authlib reads client credentials from a Starlette Config object
starlette_config = Config(environ={
    "GITHUB_CLIENT_ID": settings.github_client_id,
    "GITHUB_CLIENT_SECRET": settings.github_client_secret,
})

oauth = OAuth(starlette_config)

oauth.register(
    name=PROVIDER_GITHUB,
    access_token_url=GITHUB_TOKEN_URL,
    access_token_params=None,
    authorize_url=GITHUB_AUTHORIZE_URL,
    authorize_params=None,
    api_base_url=GITHUB_API_BASE_URL,
    client_kwargs={"scope": GITHUB_SCOPE, "timeout": HTTPX_TIMEOUT},
)


def github_payload(token: dict[str, Any], profile: dict[str, Any]) -> AuthPayload:
    """Normalize a GitHub token response and ``GET /user`` profile.

    GitHub users may leave their display name empty; the login is used then.
    """
    if "id" not in profile or not profile.get("login"):
        raise MalformedPayloadError("GitHub profile is missing id or login")

    return parse_auth_payload({
        "provider": PROVIDER_GITHUB,
        "uid": str(profile["id"]),
        "info": {
            "name": profile.get("name") or profile["login"],
            "nickname": profile["login"],
            "accessToken": token.get("access_token") or "",
        },
    })


async def fetch_github_payload(request: Request) -> AuthPayload:
    """Finish the GitHub authorization-code exchange and fetch the user's profile.

    Raises:
        authlib OAuthError: state mismatch, denied access or token exchange failure.
        httpx.HTTPError: the profile request failed.
        MalformedPayloadError: GitHub returned an incomplete or unparseable profile.
    """
    token = await oauth.github.authorize_access_token(request)
    response = await oauth.github.get("user", token=token)
    response.raise_for_status()
    try:
        profile = response.json()
    except ValueError as e:
        raise MalformedPayloadError("GitHub profile response is not valid JSON") from e
    if not isinstance(profile, dict):
        raise MalformedPayloadError("GitHub profile response is not an object")
    return github_payload(token, profile)
