"""Find-or-create of local accounts from OAuth payloads."""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError
from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from octogate.auth.errors import MalformedPayloadError, PersistenceValidationError
from octogate.models.account import Account
from octogate.models.schemas import AuthPayload
from octogate.utils.logging import LogContext, get_logger

logger = get_logger(__name__)

# Columns overwritten from the provider on every login
REFRESHED_FIELDS = ("display_name", "nickname", "access_token")

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def parse_auth_payload(data: Mapping[str, Any]) -> AuthPayload:
    """Validate a raw payload mapping.

    Raises:
        MalformedPayloadError: if a required field is missing or mistyped.
    """
    try:
        return AuthPayload.model_validate(data)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise MalformedPayloadError(
            f"Malformed authentication payload: {', '.join(fields)}"
        ) from e


def _account_values(payload: AuthPayload) -> dict[str, str]:
    return {
        "provider": payload.provider,
        "external_id": payload.uid,
        "display_name": payload.info.name,
        "nickname": payload.info.nickname,
        "access_token": payload.info.access_token.get_secret_value(),
    }


def _check_lengths(values: dict[str, str]) -> None:
    """Reject values longer than their column before hitting the store.

    Not every backend enforces VARCHAR lengths (SQLite doesn't).
    """
    columns = Account.__table__.columns
    too_long = [
        name
        for name, value in values.items()
        if columns[name].type.length is not None and len(value) > columns[name].type.length
    ]
    if too_long:
        raise PersistenceValidationError(f"Value too long for: {', '.join(too_long)}")


async def find_account(db: AsyncSession, provider: str, external_id: str) -> Account | None:
    """Look up an account by its (provider, external_id) pair."""
    result = await db.execute(
        select(Account).where(
            Account.provider == provider,
            Account.external_id == external_id,
        )
    )
    return result.scalar_one_or_none()


async def get_account(db: AsyncSession, account_id: int) -> Account | None:
    """Look up an account by primary key."""
    return await db.get(Account, account_id)


async def _upsert(db: AsyncSession, values: dict[str, str]) -> Account:
    """Single-statement INSERT ... ON CONFLICT DO UPDATE ... RETURNING."""
    insert = _UPSERT_DIALECTS[db.get_bind().dialect.name]
    stmt = insert(Account).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["provider", "external_id"],
        set_={
            **{name: getattr(stmt.excluded, name) for name in REFRESHED_FIELDS},
            "updated_at": func.now(),
        },
    ).returning(Account)
    result = await db.scalars(stmt, execution_options={"populate_existing": True})
    return result.one()


async def _insert_or_refetch(db: AsyncSession, values: dict[str, str]) -> Account:
    """Insert inside a savepoint; if the pair already exists, update that row instead.

    Used on backends without a native upsert.

    Raises:
        PersistenceValidationError: the insert broke a constraint other than
            the (provider, external_id) pair.
    """
    try:
        async with db.begin_nested():
            account = Account(**values)
            db.add(account)
        return account
    except IntegrityError as e:
        rejected = e
        logger.info("Insert rejected, updating the existing account for this provider/uid")

    await db.execute(
        update(Account)
        .where(
            Account.provider == values["provider"],
            Account.external_id == values["external_id"],
        )
        .values({name: values[name] for name in REFRESHED_FIELDS})
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(
        select(Account)
        .where(
            Account.provider == values["provider"],
            Account.external_id == values["external_id"],
        )
        .execution_options(populate_existing=True)
    )
    account = result.scalar_one_or_none()
    if account is None:
        # No existing row, so the pair was not what the insert collided on
        raise PersistenceValidationError() from rejected
    return account


async def resolve_account(
    db: AsyncSession,
    payload: AuthPayload | Mapping[str, Any],
) -> Account:
    """Find or create the account for a completed OAuth login and refresh its profile.

    The (provider, uid) pair maps to at most one account. Profile fields and
    the access token are overwritten with the payload values every time, so
    resolving the same payload twice leaves the same stored state.

    Args:
        db: Database session; committed before returning.
        payload: Normalized payload, or a raw mapping to validate first.

    Returns:
        The persisted account.

    Raises:
        MalformedPayloadError: payload is incomplete; nothing was written.
        PersistenceValidationError: the store rejected the write; rolled back.
    """
    if not isinstance(payload, AuthPayload):
        payload = parse_auth_payload(payload)

    log = LogContext(logger, provider=payload.provider, uid=payload.uid)
    values = _account_values(payload)
    _check_lengths(values)

    try:
        if db.get_bind().dialect.name in _UPSERT_DIALECTS:
            account = await _upsert(db, values)
        else:
            account = await _insert_or_refetch(db, values)
        await db.commit()
    except DBAPIError as e:
        await db.rollback()
        log.warning(f"Account write rejected: {e.__class__.__name__}")
        raise PersistenceValidationError() from e
    except PersistenceValidationError:
        await db.rollback()
        log.warning("Account write rejected by a constraint")
        raise

    log.info(f"Resolved account {account.id}")
    return account
