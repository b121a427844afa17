"""Engines and resolver construction shared by the API routes."""

from __future__ import annotations

from typing import Callable, Iterable

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from ..catalog import catalog_for_engine
from ..config import Settings
from ..engine import SchemaChange
from ..store import SqlRuleStore

ChangeFactory = Callable[..., SchemaChange]

_source_engine: Engine | None = None
_meta_engine: Engine | None = None
_settings: Settings | None = None


def configure(settings: Settings, source_engine: Engine, meta_engine: Engine) -> None:
    """Set the global engines (called from app lifespan)."""
    global _settings, _source_engine, _meta_engine
    _settings = settings
    _source_engine = source_engine
    _meta_engine = meta_engine


def reset() -> None:
    global _settings, _source_engine, _meta_engine
    _settings = _source_engine = _meta_engine = None


def _require() -> tuple[Settings, Engine, Engine]:
    if _settings is None or _source_engine is None or _meta_engine is None:
        raise RuntimeError("Database engines not initialized")
    return _settings, _source_engine, _meta_engine


def build_change(schema: str, target_schema: str, tables: Iterable[str] | None) -> SchemaChange:
    """Build a resolution run over ``tables`` (all tables of ``schema`` when None)."""
    settings, source_engine, meta_engine = _require()
    table_list = list(tables) if tables else inspect(source_engine).get_table_names(schema=schema)
    return SchemaChange(
        rule_store=SqlRuleStore(meta_engine),
        catalog=catalog_for_engine(source_engine),
        source_schema=schema,
        target_schema=target_schema,
        tables=table_list,
        threads=settings.threads,
        source_db=settings.source_db_type,
        target_db=settings.target_db_type,
        sensitive_types=settings.sensitive_types,
    )


def get_change_factory() -> ChangeFactory:
    """Dependency returning the resolver factory; tests override it."""
    return build_change
