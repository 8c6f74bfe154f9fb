"""
Test configuration and fixtures for the contact submissions API.

No live database is needed: the HTTP tests stub the pool lifecycle, and the
repository is exercised against `AsyncMock` stand-ins for `core.db`.
"""

import os
from datetime import datetime, timezone
from typing import Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DB_HOST", "127.0.0.1")
os.environ.setdefault("DB_USER", "contacts")
os.environ.setdefault("DB_PASSWORD", "contacts")
os.environ.setdefault("DB_NAME", "contacts_test")
os.environ.setdefault("DB_PORT", "5432")


class FakeAcquire:
    """Stands in for `pool.acquire()` / `db.connection()`."""

    def __init__(self, conn=None, exc: BaseException | None = None):
        self.conn = conn
        self.exc = exc
        self.released = False

    async def __aenter__(self):
        if self.exc is not None:
            raise self.exc
        return self.conn

    async def __aexit__(self, exc_type, exc, tb):
        self.released = True
        return False


class FakePool:
    def __init__(self, acquire: FakeAcquire):
        self._acquire = acquire

    def acquire(self) -> FakeAcquire:
        return self._acquire


def make_row(**overrides) -> dict:
    created = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)
    row = {
        "id": 7,
        "name": "Alice Kamau",
        "email": "alice@example.com",
        "company": "Acme Ltd",
        "service": "pentest",
        "message": "We need an external pentest before launch.",
        "status": "new",
        "created_at": created,
        "updated_at": created,
    }
    row.update(overrides)
    return row


@pytest.fixture
def contact_row():
    return make_row


@pytest.fixture
def valid_payload() -> dict:
    return {
        "name": "Alice Kamau",
        "email": "alice@example.com",
        "company": "Acme Ltd",
        "service": "pentest",
        "message": "We need an external pentest before launch.",
    }


@pytest.fixture
def test_app(monkeypatch):
    """FastAPI app with the pool lifecycle and schema bootstrap stubbed out."""
    from contacts import schema
    from core import db

    monkeypatch.setattr(db, "init_pool", AsyncMock())
    monkeypatch.setattr(db, "close_pool", AsyncMock())
    monkeypatch.setattr(schema, "initialize", AsyncMock(return_value=True))

    from main import app

    return app


@pytest.fixture
def client(test_app) -> Generator[TestClient, None, None]:
    with TestClient(test_app) as test_client:
        yield test_client
