"""Runtime settings read from the environment (.env or Azure Key Vault)."""

from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from .defaults import DEFAULT_SENSITIVE_TYPES
from .keyvault_loader import load_env


def _split(value: str) -> tuple[str, ...]:
    return tuple(v.strip().upper() for v in value.split(",") if v.strip())


@dataclass(frozen=True)
class Settings:
    source_database_url: str | None = None
    meta_database_url: str | None = None
    source_db_type: str = "mysql"
    target_db_type: str = "oracle"
    source_schema: str = ""
    target_schema: str = ""
    threads: int = 4
    sensitive_types: tuple[str, ...] = DEFAULT_SENSITIVE_TYPES
    api_auth_token: str | None = None

    @classmethod
    def from_env(cls, load: bool = True) -> Settings:
        if load:
            load_env()
        env = os.environ
        threads = int(env.get("MAPPER_THREADS", "4") or "4")
        sensitive = _split(env.get("DEFAULT_SENSITIVE_TYPES", "")) or DEFAULT_SENSITIVE_TYPES
        return cls(
            source_database_url=env.get("SOURCE_DATABASE_URL") or None,
            meta_database_url=env.get("META_DATABASE_URL") or None,
            source_db_type=(env.get("SOURCE_DB_TYPE") or "mysql").strip().lower(),
            target_db_type=(env.get("TARGET_DB_TYPE") or "oracle").strip().lower(),
            source_schema=(env.get("SOURCE_SCHEMA") or "").strip(),
            target_schema=(env.get("TARGET_SCHEMA") or "").strip(),
            threads=threads,
            sensitive_types=sensitive,
            api_auth_token=env.get("API_AUTH_TOKEN") or None,
        )

    def require(self, name: str) -> str:
        value = getattr(self, name)
        if not value:
            raise RuntimeError(f"{name.upper()} is not set (Key Vault or .env)")
        return value


def make_engine(database_url: str) -> Engine:
    """Create a SQLAlchemy engine with connection pooling."""
    if database_url.startswith("sqlite"):
        return create_engine(database_url)
    connect_args = {"timeout": 10} if database_url.startswith("mssql+") else {"connect_timeout": 10}
    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        connect_args=connect_args,
    )
