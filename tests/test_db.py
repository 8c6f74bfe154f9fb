import asyncio
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from conftest import FakeAcquire, FakePool
from core import db


@pytest.mark.parametrize(
    "exc, reason",
    [
        (ConnectionRefusedError(111, "Connection refused"), db.UNREACHABLE),
        (OSError("Name or service not known"), db.UNREACHABLE),
        (TimeoutError(), db.UNREACHABLE),
        (asyncpg.CannotConnectNowError("the database system is starting up"), db.UNREACHABLE),
        (asyncpg.TooManyConnectionsError("too many clients"), db.UNREACHABLE),
        (asyncpg.ConnectionDoesNotExistError("connection was closed"), db.UNREACHABLE),
        (asyncpg.InvalidPasswordError("password authentication failed"), db.ACCESS_DENIED),
        (asyncpg.InvalidAuthorizationSpecificationError("role does not exist"), db.ACCESS_DENIED),
        (asyncpg.InvalidCatalogNameError('database "leads" does not exist'), db.DATABASE_MISSING),
    ],
)
def test_classify_connectivity_errors(exc, reason):
    assert db.classify_error(exc) == reason


@pytest.mark.parametrize(
    "exc",
    [
        asyncpg.UniqueViolationError("duplicate key"),
        asyncpg.CheckViolationError("violates check constraint"),
        asyncpg.PostgresSyntaxError("syntax error at or near"),
        asyncpg.UndefinedTableError('relation "contacts" does not exist'),
        ValueError("not a store error"),
    ],
)
def test_classify_data_errors(exc):
    assert db.classify_error(exc) is None


def test_pool_must_be_initialized(monkeypatch):
    monkeypatch.setattr(db, "_pool", None)
    with pytest.raises(RuntimeError):
        db.pool()


@pytest.mark.asyncio
async def test_connection_translates_connect_failure(monkeypatch):
    acquire = FakeAcquire(exc=ConnectionRefusedError(111, "Connection refused"))
    monkeypatch.setattr(db, "_pool", FakePool(acquire))

    with pytest.raises(db.ConnectivityError) as exc_info:
        async with db.connection():
            pass

    assert exc_info.value.reason == db.UNREACHABLE
    assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)


@pytest.mark.asyncio
async def test_connection_translates_statement_failure_and_releases(monkeypatch):
    conn = MagicMock()
    conn.fetchrow = AsyncMock(side_effect=asyncpg.CheckViolationError("violates check constraint"))
    acquire = FakeAcquire(conn=conn)
    monkeypatch.setattr(db, "_pool", FakePool(acquire))

    with pytest.raises(db.DataError):
        await db.fetch_one("SELECT 1")

    assert acquire.released is True


@pytest.mark.asyncio
async def test_statement_timeout_is_a_data_error(monkeypatch):
    conn = MagicMock()
    conn.fetchrow = AsyncMock(side_effect=asyncio.TimeoutError())
    acquire = FakeAcquire(conn=conn)
    monkeypatch.setattr(db, "_pool", FakePool(acquire))

    with pytest.raises(db.DataError) as exc_info:
        await db.fetch_one("INSERT ...")

    assert not isinstance(exc_info.value, db.ConnectivityError)
    assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)
    assert acquire.released is True


@pytest.mark.asyncio
async def test_acquire_timeout_is_unreachable(monkeypatch):
    monkeypatch.setattr(db, "_pool", FakePool(FakeAcquire(exc=asyncio.TimeoutError())))

    with pytest.raises(db.ConnectivityError) as exc_info:
        await db.fetch_one("SELECT 1")

    assert exc_info.value.reason == db.UNREACHABLE


@pytest.mark.asyncio
async def test_connection_passes_other_errors_through(monkeypatch):
    acquire = FakeAcquire(conn=MagicMock())
    monkeypatch.setattr(db, "_pool", FakePool(acquire))

    with pytest.raises(KeyError):
        async with db.connection():
            raise KeyError("not a store problem")

    assert acquire.released is True


@pytest.mark.asyncio
async def test_fetch_helpers_return_dicts(monkeypatch):
    conn = MagicMock()
    conn.fetchrow = AsyncMock(return_value={"id": 1, "status": "new"})
    conn.fetch = AsyncMock(return_value=[{"id": 2}, {"id": 1}])
    monkeypatch.setattr(db, "_pool", FakePool(FakeAcquire(conn=conn)))

    assert await db.fetch_one("SELECT ...") == {"id": 1, "status": "new"}
    assert await db.fetch_all("SELECT ...") == [{"id": 2}, {"id": 1}]


@pytest.mark.asyncio
async def test_fetch_one_returns_none_for_no_row(monkeypatch):
    conn = MagicMock()
    conn.fetchrow = AsyncMock(return_value=None)
    monkeypatch.setattr(db, "_pool", FakePool(FakeAcquire(conn=conn)))

    assert await db.fetch_one("SELECT ...") is None


@pytest.mark.asyncio
async def test_open_connection_classifies_missing_database(monkeypatch):
    connect = AsyncMock(side_effect=asyncpg.InvalidCatalogNameError('database "leads" does not exist'))
    monkeypatch.setattr(db.asyncpg, "connect", connect)
    monkeypatch.delenv("DATABASE_URL", raising=False)

    with pytest.raises(db.ConnectivityError) as exc_info:
        await db.open_connection()

    assert exc_info.value.reason == db.DATABASE_MISSING


@pytest.mark.asyncio
async def test_open_connection_overrides_database(monkeypatch):
    connect = AsyncMock(return_value=MagicMock())
    monkeypatch.setattr(db.asyncpg, "connect", connect)
    monkeypatch.delenv("DATABASE_URL", raising=False)

    await db.open_connection(database="postgres")

    assert connect.await_args.kwargs["database"] == "postgres"
