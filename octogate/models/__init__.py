"""SQLAlchemy models."""

from octogate.models.account import Account
from octogate.models.base import Base

__all__ = [
    "Account",
    "Base",
]
