"""Authentication module."""

from octogate.auth.dependencies import (
    get_authenticated_account,
    get_optional_account,
    require_account,
)
from octogate.auth.errors import (
    AuthenticationError,
    LoginRequired,
    MalformedPayloadError,
    PersistenceValidationError,
)
from octogate.auth.oauth import oauth

__all__ = [
    "AuthenticationError",
    "LoginRequired",
    "MalformedPayloadError",
    "PersistenceValidationError",
    "get_authenticated_account",
    "get_optional_account",
    "oauth",
    "require_account",
]
