"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`). Each helper checks one connection
out of the pool, runs one statement and hands the connection back, on every
exit path.

Failures coming out of the store are split in two:
- ConnectivityError: the store is unreachable, rejects our credentials, or
  the target database does not exist. Callers may choose to degrade.
- DataError: the store answered but the statement itself failed
  (constraint violation, malformed SQL, bad argument).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from . import config

UNREACHABLE = "unreachable"
ACCESS_DENIED = "access_denied"
DATABASE_MISSING = "database_missing"

_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)
_DSN_SCHEMES = ("postgresql", "postgres")

_pool: asyncpg.Pool | None = None


class ConnectivityError(RuntimeError):
    """
    The store cannot be used right now. `reason` is one of
    UNREACHABLE, ACCESS_DENIED, DATABASE_MISSING.
    """

    def __init__(self, reason: str, detail: str = "") -> None:
        super().__init__(f"{reason}: {detail}" if detail else reason)
        self.reason = reason


class DataError(RuntimeError):
    pass


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _validate_database_url(url: str) -> None:
    """
    Reject a DATABASE_URL asyncpg could not connect with, before the pool is built.
    """
    parts = urlsplit(url)
    query = dict(parse_qsl(parts.query))
    problems = []
    if parts.scheme not in _DSN_SCHEMES:
        problems.append(f"scheme must be one of {', '.join(_DSN_SCHEMES)}")
    if not parts.hostname and not query.get("host"):
        problems.append("host is missing")
    try:
        parts.port
    except ValueError:
        problems.append("port is not a number between 0 and 65535")
    if not parts.path.strip("/") and not (query.get("dbname") or query.get("database")):
        problems.append("database name is missing")
    if problems:
        raise config.ConfigurationError(f"Invalid DATABASE_URL: {'; '.join(problems)}")


def connect_kwargs() -> dict[str, Any]:
    """
    asyncpg connect arguments. DATABASE_URL wins over the discrete DB_* variables.

    Raises config.ConfigurationError when neither is usable.
    """
    url = config.database_url()
    if url:
        _validate_database_url(url)
        return {"dsn": _sanitize_database_url(url)}

    settings = config.database_settings()
    return {
        "host": settings.host,
        "port": settings.port,
        "user": settings.user,
        "password": settings.password,
        "database": settings.database,
    }


def classify_error(exc: BaseException) -> str | None:
    """
    Return the connectivity reason for `exc`, or None when it is a data error.
    """
    # InvalidPasswordError is a subclass of InvalidAuthorizationSpecificationError.
    if isinstance(exc, asyncpg.InvalidAuthorizationSpecificationError):
        return ACCESS_DENIED
    if isinstance(exc, asyncpg.InvalidCatalogNameError):
        return DATABASE_MISSING
    if isinstance(
        exc,
        (
            asyncpg.PostgresConnectionError,
            asyncpg.CannotConnectNowError,
            asyncpg.TooManyConnectionsError,
            OSError,
            asyncio.TimeoutError,
        ),
    ):
        return UNREACHABLE
    return None


def _translate(exc: BaseException) -> Exception:
    reason = classify_error(exc)
    if reason is not None:
        return ConnectivityError(reason, str(exc))
    return DataError(str(exc) or exc.__class__.__name__)


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    # min_size=0: no connection is opened here, so a store that is down at
    # startup does not keep the API from serving.
    _pool = await asyncpg.create_pool(
        min_size=0,
        max_size=config.pool_max_size(),
        command_timeout=30,
        timeout=config.connect_timeout(),
        **connect_kwargs(),
    )


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


@asynccontextmanager
async def connection() -> AsyncIterator[asyncpg.Connection]:
    """
    Check a pooled connection out for the duration of the block.

    Store failures raised while connecting or inside the block come out as
    ConnectivityError or DataError. Anything else passes through unchanged.

    A timeout only counts as connectivity while a connection is being
    acquired. Once the statement is running the store was reachable, and the
    write may already have committed, so a statement timeout is a DataError.
    """
    acquired = False
    try:
        async with pool().acquire() as conn:
            acquired = True
            yield conn
    except _STORE_ERRORS as exc:
        if acquired and isinstance(exc, asyncio.TimeoutError):
            raise DataError("statement timed out") from exc
        raise _translate(exc) from exc


async def open_connection(*, database: str | None = None) -> asyncpg.Connection:
    """
    Open a single-use connection outside the pool. The caller must close it.

    `database` overrides the configured database name (used to reach the
    maintenance database before the target one exists).
    """
    kwargs = connect_kwargs()
    if database is not None:
        kwargs["database"] = database
    try:
        return await asyncpg.connect(timeout=config.connect_timeout(), **kwargs)
    except _STORE_ERRORS as exc:
        raise _translate(exc) from exc


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_one(sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    async with connection() as conn:
        row = await conn.fetchrow(sql, *args)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    async with connection() as conn:
        rows = await conn.fetch(sql, *args)
    return [_record_to_dict(r) for r in rows]
