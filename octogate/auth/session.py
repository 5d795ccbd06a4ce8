"""Session identity slot: who is signed in for the current request.

The signed session cookie holds only the account id under
``SESSION_ACCOUNT_KEY``. The resolved :class:`Account` is memoized on
``request.state`` so it is loaded at most once per request, however many
dependencies ask for it.
"""

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from octogate.auth.errors import LoginRequired
from octogate.auth.resolver import get_account
from octogate.constants import SESSION_ACCOUNT_KEY
from octogate.models.account import Account
from octogate.utils.logging import get_logger

logger = get_logger(__name__)

_UNRESOLVED = object()


def set_current_account(request: Request, account: Account) -> None:
    """Sign ``account`` in, replacing whoever was signed in before."""
    request.session[SESSION_ACCOUNT_KEY] = account.id
    request.state.current_account = account


async def get_current_account(request: Request, db: AsyncSession) -> Account | None:
    """Return the signed-in account, or None for anonymous sessions."""
    cached = getattr(request.state, "current_account", _UNRESOLVED)
    if cached is not _UNRESOLVED:
        return cached

    account = None
    account_id = request.session.get(SESSION_ACCOUNT_KEY)
    if account_id is not None:
        account = await get_account(db, account_id)
        if account is None:
            # Account was removed since login; treat as signed out
            logger.info(f"Dropping stale session reference to account {account_id}")
            request.session.pop(SESSION_ACCOUNT_KEY, None)

    request.state.current_account = account
    return account


async def is_authenticated(request: Request, db: AsyncSession) -> bool:
    return await get_current_account(request, db) is not None


def clear_session(request: Request) -> None:
    """Sign out: drop the identity slot."""
    request.session.pop(SESSION_ACCOUNT_KEY, None)
    request.state.current_account = None


def require_authentication(account: Account | None) -> Account:
    """Return ``account`` or raise :class:`LoginRequired` when nobody is signed in."""
    if account is None:
        raise LoginRequired()
    return account
