"""
Environment-driven settings.

Everything is read from process environment variables. A `.env` file in the
working directory is loaded by `api/main.py` and `api/manage_db.py` before any
of these helpers run.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

DEFAULT_DB_PORT = 5432
DEFAULT_LISTEN_PORT = 3003


class ConfigurationError(RuntimeError):
    """
    Store settings are missing or malformed. Not recoverable at runtime.
    """


@dataclass(frozen=True)
class DatabaseSettings:
    host: str
    user: str
    password: str | None
    database: str
    port: int

    def describe(self) -> str:
        # Safe for logs: no password.
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def database_settings() -> DatabaseSettings:
    """
    Discrete connection settings (DB_HOST, DB_USER, DB_PASSWORD, DB_NAME, DB_PORT).

    Raises ConfigurationError when a required variable is missing or DB_PORT
    is not a valid port number.
    """
    missing = [name for name in ("DB_HOST", "DB_USER", "DB_NAME") if not _env_str(name)]
    if missing:
        raise ConfigurationError(f"Missing database configuration: {', '.join(missing)}.")

    raw_port = _env_str("DB_PORT")
    if not raw_port:
        port = DEFAULT_DB_PORT
    else:
        try:
            port = int(raw_port)
        except ValueError as exc:
            raise ConfigurationError(f"DB_PORT must be an integer, got {raw_port!r}.") from exc
        if not 1 <= port <= 65535:
            raise ConfigurationError(f"DB_PORT out of range: {port}.")

    return DatabaseSettings(
        host=_env_str("DB_HOST"),
        user=_env_str("DB_USER"),
        password=os.environ.get("DB_PASSWORD") or None,
        database=_env_str("DB_NAME"),
        port=port,
    )


def database_url() -> str | None:
    return _env_str("DATABASE_URL") or None


def connect_timeout() -> float:
    return _env_float("DB_CONNECT_TIMEOUT", 5.0)


def pool_max_size() -> int:
    size = _env_int("DB_POOL_MAX_SIZE", 5)
    return size if size > 0 else 5


def listen_port() -> int:
    return _env_int("PORT", DEFAULT_LISTEN_PORT)


def cors_origins() -> list[str]:
    raw = _env_str("CORS_ORIGINS", "*") or "*"
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def log_level() -> str:
    return (_env_str("LOG_LEVEL", "INFO") or "INFO").upper()


def configure_logging() -> None:
    level = log_level()
    if not isinstance(logging.getLevelName(level), int):
        level = "INFO"
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
