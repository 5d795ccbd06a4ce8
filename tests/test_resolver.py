"""Tests for account find-or-create."""

import asyncio
import logging

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from octogate.auth.errors import MalformedPayloadError, PersistenceValidationError
from octogate.auth.resolver import (
    _account_values,
    _insert_or_refetch,
    find_account,
    parse_auth_payload,
    resolve_account,
)
from octogate.models.account import Account
from octogate.models.base import Base


def github_payload(uid: str = "42", token: str = "tok1", **info) -> dict:
    return {
        "provider": "github",
        "uid": uid,
        "info": {
            "name": info.get("name", "Ada"),
            "nickname": info.get("nickname", "ada"),
            "accessToken": token,
        },
    }


async def count_accounts(db: AsyncSession) -> int:
    return await db.scalar(select(func.count()).select_from(Account))


class TestResolveAccount:
    """Tests for resolve_account."""

    @pytest.mark.asyncio
    async def test_creates_account_on_first_login(self, db_session: AsyncSession):
        account = await resolve_account(db_session, github_payload())

        assert account.id is not None
        assert account.provider == "github"
        assert account.external_id == "42"
        assert account.display_name == "Ada"
        assert account.nickname == "ada"
        assert account.access_token == "tok1"
        assert await count_accounts(db_session) == 1

        found = await find_account(db_session, "github", "42")
        assert found is not None
        assert found.id == account.id

    @pytest.mark.asyncio
    async def test_second_login_refreshes_same_account(self, db_session: AsyncSession):
        first = await resolve_account(db_session, github_payload(token="tok1"))
        first_id = first.id

        second = await resolve_account(
            db_session,
            github_payload(token="tok2", name="Ada Lovelace", nickname="countess"),
        )

        assert second.id == first_id
        assert second.access_token == "tok2"
        assert second.display_name == "Ada Lovelace"
        assert second.nickname == "countess"
        assert await count_accounts(db_session) == 1

        stored = await find_account(db_session, "github", "42")
        assert stored.access_token == "tok2"

    @pytest.mark.asyncio
    async def test_same_payload_twice_is_idempotent(self, db_session: AsyncSession):
        first = await resolve_account(db_session, github_payload())
        snapshot = (first.id, first.display_name, first.nickname, first.access_token)

        second = await resolve_account(db_session, github_payload())

        assert (second.id, second.display_name, second.nickname, second.access_token) == snapshot
        assert await count_accounts(db_session) == 1

    @pytest.mark.asyncio
    async def test_profile_values_stored_verbatim(self, db_session: AsyncSession):
        account = await resolve_account(db_session, github_payload(name=" Ada ", nickname="ada "))

        stored = await find_account(db_session, "github", "42")
        assert account.display_name == " Ada "
        assert stored.nickname == "ada "

    @pytest.mark.asyncio
    async def test_distinct_uids_get_distinct_accounts(self, db_session: AsyncSession):
        a = await resolve_account(db_session, github_payload(uid="1"))
        b = await resolve_account(db_session, github_payload(uid="2"))

        assert a.id != b.id
        assert await count_accounts(db_session) == 2

    @pytest.mark.asyncio
    async def test_accepts_parsed_payload(self, db_session: AsyncSession):
        payload = parse_auth_payload(github_payload(uid="7"))

        account = await resolve_account(db_session, payload)

        assert account.external_id == "7"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"uid": "42", "info": {"name": "Ada", "nickname": "ada", "accessToken": "t"}},
            {"provider": "github", "info": {"name": "Ada", "nickname": "ada", "accessToken": "t"}},
            {"provider": "github", "uid": "", "info": {"name": "Ada", "nickname": "ada", "accessToken": "t"}},
            {"provider": "github", "uid": 42, "info": {"name": "Ada", "nickname": "ada", "accessToken": "t"}},
            {"provider": "github", "uid": "42"},
            {"provider": "github", "uid": "42", "info": {"nickname": "ada", "accessToken": "t"}},
            {"provider": "github", "uid": "42", "info": {"name": "Ada", "nickname": "ada"}},
            {"provider": "github", "uid": "42", "info": {"name": "Ada", "nickname": "ada", "accessToken": "  "}},
        ],
    )
    async def test_malformed_payload_writes_nothing(self, db_session: AsyncSession, payload: dict):
        with pytest.raises(MalformedPayloadError):
            await resolve_account(db_session, payload)

        assert await count_accounts(db_session) == 0

    @pytest.mark.asyncio
    async def test_overlong_field_is_persistence_error(self, db_session: AsyncSession):
        with pytest.raises(PersistenceValidationError) as exc_info:
            await resolve_account(db_session, github_payload(name="x" * 256))

        assert "display_name" in exc_info.value.reason
        assert not isinstance(exc_info.value, MalformedPayloadError)
        assert await count_accounts(db_session) == 0

    @pytest.mark.asyncio
    async def test_rejected_write_is_rolled_back_and_logged(
        self, db_session: AsyncSession, monkeypatch, caplog
    ):
        async def reject(db, values):
            raise IntegrityError("INSERT INTO accounts", {}, Exception("CHECK constraint failed"))

        monkeypatch.setattr("octogate.auth.resolver._upsert", reject)

        with caplog.at_level(logging.WARNING, logger="octogate.auth.resolver"):
            with pytest.raises(PersistenceValidationError):
                await resolve_account(db_session, github_payload())

        assert "[provider=github] [uid=42] Account write rejected: IntegrityError" in caplog.text
        assert await count_accounts(db_session) == 0

    @pytest.mark.asyncio
    async def test_concurrent_first_logins_store_one_account(self, tmp_path):
        """Two callbacks racing for the same new identity end up on one row."""
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        session_maker = async_sessionmaker(engine, expire_on_commit=False)

        async def login(token: str) -> Account:
            async with session_maker() as session:
                return await resolve_account(session, github_payload(uid="99", token=token))

        try:
            a, b = await asyncio.gather(login("tok-a"), login("tok-b"))

            assert a.id == b.id
            async with session_maker() as session:
                assert await count_accounts(session) == 1
                stored = await find_account(session, "github", "99")
                assert stored.access_token in {"tok-a", "tok-b"}
        finally:
            await engine.dispose()


class TestInsertOrRefetch:
    """Tests for the savepoint path used on backends without native upsert."""

    @pytest.mark.asyncio
    async def test_inserts_new_pair(self, db_session: AsyncSession):
        values = _account_values(parse_auth_payload(github_payload()))

        account = await _insert_or_refetch(db_session, values)
        await db_session.commit()

        assert account.id is not None
        assert await count_accounts(db_session) == 1

    @pytest.mark.asyncio
    async def test_conflict_updates_existing_row(self, db_session: AsyncSession):
        first = await _insert_or_refetch(
            db_session, _account_values(parse_auth_payload(github_payload(token="tok1")))
        )
        await db_session.commit()
        first_id = first.id

        second = await _insert_or_refetch(
            db_session, _account_values(parse_auth_payload(github_payload(token="tok2")))
        )
        await db_session.commit()

        assert second.id == first_id
        assert second.access_token == "tok2"
        assert await count_accounts(db_session) == 1

    @pytest.mark.asyncio
    async def test_other_constraint_violation_is_persistence_error(self, db_session: AsyncSession):
        values = _account_values(parse_auth_payload(github_payload()))
        values["display_name"] = None

        with pytest.raises(PersistenceValidationError):
            await _insert_or_refetch(db_session, values)

        await db_session.rollback()
        assert await count_accounts(db_session) == 0


class TestParseAuthPayload:
    """Tests for payload validation."""

    def test_token_is_secret(self):
        payload = parse_auth_payload(github_payload(token="gho_secret"))

        assert "gho_secret" not in repr(payload)
        assert payload.info.access_token.get_secret_value() == "gho_secret"

    def test_accepts_snake_case_token_field(self):
        payload = parse_auth_payload({
            "provider": "github",
            "uid": "1",
            "info": {"name": "Ada", "nickname": "ada", "access_token": "tok"},
        })

        assert payload.info.access_token.get_secret_value() == "tok"

    def test_error_names_missing_fields(self):
        with pytest.raises(MalformedPayloadError) as exc_info:
            parse_auth_payload({"provider": "github", "info": {"name": "Ada"}})

        assert "uid" in exc_info.value.reason
        assert "info.nickname" in exc_info.value.reason
