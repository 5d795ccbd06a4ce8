"""Current account API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from octogate.auth import get_authenticated_account
from octogate.models.account import Account
from octogate.models.schemas import AccountRead

router = APIRouter()


@router.get("", response_model=AccountRead)
async def get_me(account: Annotated[Account, Depends(get_authenticated_account)]) -> Account:
    """Get current authenticated account."""
    return account
