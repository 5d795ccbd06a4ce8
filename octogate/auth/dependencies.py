"""Authentication dependencies for FastAPI."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from octogate.auth.session import get_current_account, require_authentication
from octogate.db import get_db
from octogate.models.account import Account


async def get_optional_account(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Account | None:
    """Get current account from session if logged in."""
    return await get_current_account(request, db)


async def require_account(
    account: Annotated[Account | None, Depends(get_optional_account)],
) -> Account:
    """Get current account, redirecting to the login page if not authenticated."""
    return require_authentication(account)


async def get_authenticated_account(
    account: Annotated[Account | None, Depends(get_optional_account)],
) -> Account:
    """Get current account, raising 401 if not authenticated."""
    if not account:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return account
