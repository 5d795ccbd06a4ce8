"""Server-rendered pages."""

from octogate.web.router import web_router

__all__ = ["web_router"]
