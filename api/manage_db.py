"""
Database maintenance commands.

Usage (from the `api/` directory, with DB_* variables or DATABASE_URL set):

    python manage_db.py init    # create the database if missing, then the contacts table
    python manage_db.py check   # round-trip a test submission through the repository

Exit codes: 0 success, 1 store or schema failure, 2 configuration error.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from urllib.parse import unquote, urlsplit

import asyncpg
from dotenv import load_dotenv

from contacts import repository, schemas
from contacts import schema as contacts_schema
from core import config, db

logger = logging.getLogger("manage_db")

MAINTENANCE_DATABASE = "postgres"


def _target_database() -> str:
    url = config.database_url()
    if url:
        name = unquote(urlsplit(url).path.lstrip("/"))
        if not name:
            raise config.ConfigurationError("DATABASE_URL does not name a database.")
        return name
    return config.database_settings().database


def _quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


async def init_database() -> None:
    database = _target_database()

    conn = await db.open_connection(database=MAINTENANCE_DATABASE)
    try:
        exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", database)
        if exists:
            logger.info("database_exists name=%s", database)
        else:
            await conn.execute(f"CREATE DATABASE {_quote_ident(database)}")
            logger.info("database_created name=%s", database)
    finally:
        await conn.close()

    conn = await db.open_connection()
    try:
        await contacts_schema.ensure_schema(conn)
        logger.info("schema_ready table=contacts")
    finally:
        await conn.close()


async def check_database() -> bool:
    """
    Exercise every repository operation once. Returns False when the store
    answered in degraded mode.
    """
    await db.init_pool()
    try:
        created = await repository.create(
            schemas.ContactCreate(
                name="Test User",
                email="test@example.com",
                company="Test Company",
                service="pentest",
                message="This is a test message from the database check command.",
            )
        )
        if not created.persisted:
            logger.error("check_failed step=create reason=store_unavailable")
            return False
        logger.info("check_step step=create id=%s", created.id)

        submissions = await repository.list_all()
        logger.info("check_step step=list count=%s", len(submissions))

        found = await repository.get_by_id(created.id)
        logger.info("check_step step=get found=%s", found is not None)

        updated = await repository.update_status(created.id, "contacted")
        logger.info("check_step step=update_status updated=%s", updated)
        return found is not None and updated
    finally:
        await db.close_pool()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Contacts database maintenance.")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("init", help="Create the database (if missing) and the contacts table.")
    subparsers.add_parser("check", help="Round-trip a test submission through the store.")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    config.configure_logging()
    args = build_parser().parse_args(argv)

    try:
        if args.command == "init":
            asyncio.run(init_database())
            return 0
        return 0 if asyncio.run(check_database()) else 1
    except config.ConfigurationError as exc:
        logger.error("configuration_error error=%s", exc)
        return 2
    except (db.ConnectivityError, db.DataError, contacts_schema.SchemaError, asyncpg.PostgresError) as exc:
        logger.error("command_failed command=%s error=%s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
