"""
`contacts` table bootstrap.

There is no migration framework: the table is created if absent at startup
and by `manage_db.py init`. Every statement is idempotent.
"""

from __future__ import annotations

import logging

import asyncpg

from core import db

logger = logging.getLogger(__name__)

CREATE_CONTACTS_SQL = """
CREATE TABLE IF NOT EXISTS contacts (
    id BIGSERIAL PRIMARY KEY,
    name VARCHAR(255) NOT NULL,
    email VARCHAR(255) NOT NULL,
    company VARCHAR(255) NOT NULL DEFAULT '',
    service VARCHAR(50) NOT NULL
        CHECK (service IN ('basic-scan', 'pentest', 'training', 'audit', 'wordpress', 'other')),
    message TEXT NOT NULL,
    status VARCHAR(50) NOT NULL DEFAULT 'new'
        CHECK (status IN ('new', 'contacted', 'converted', 'archived')),
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    CHECK (created_at <= updated_at)
);

CREATE INDEX IF NOT EXISTS contacts_created_at_idx ON contacts (created_at DESC, id DESC);
"""


class SchemaError(RuntimeError):
    pass


async def ensure_schema(conn: asyncpg.Connection) -> None:
    """
    Create the contacts table and its index when missing. Safe to run repeatedly.
    """
    try:
        await conn.execute(CREATE_CONTACTS_SQL)
    except asyncpg.PostgresError as exc:
        raise SchemaError(f"Failed to create contacts table: {exc}") from exc


async def initialize() -> bool:
    """
    Startup entrypoint. Never raises: the API keeps serving in degraded mode
    when the store is down or the DDL fails.
    """
    try:
        async with db.connection() as conn:
            await ensure_schema(conn)
    except db.ConnectivityError as exc:
        logger.warning("schema_init_skipped reason=%s error=%s", exc.reason, exc)
        return False
    except (SchemaError, db.DataError):
        logger.exception("schema_init_failed")
        return False

    logger.info("schema_init_complete table=contacts")
    return True
