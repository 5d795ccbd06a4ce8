"""HTTP API."""

from octogate.api.auth import router as auth_router
from octogate.api.router import api_router

__all__ = [
    "api_router",
    "auth_router",
]
