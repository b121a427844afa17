"""Source catalog adapters for multi-database support."""

from typing import Optional

from sqlalchemy.engine import Engine

from .base import CatalogAdapter, SourceCatalog, SqlSourceCatalog
from .json_file import JsonSourceCatalog
from .mysql import MariadbAdapter, MysqlAdapter
from .postgresql import PostgresqlAdapter

_ADAPTERS = {
    "mysql": MysqlAdapter,
    "mariadb": MariadbAdapter,
    "postgresql": PostgresqlAdapter,
}


def get_adapter(dialect_name: str) -> Optional[CatalogAdapter]:
    """Get the catalog adapter for the given dialect name.

    Args:
        dialect_name: SQLAlchemy dialect name (e.g. mysql, postgresql).

    Returns:
        CatalogAdapter instance or None if dialect is not supported.
    """
    adapter_cls = _ADAPTERS.get((dialect_name or "").lower())
    if adapter_cls is None:
        return None
    return adapter_cls()


def catalog_for_engine(engine: Engine) -> SqlSourceCatalog:
    """Build a source catalog for the given engine. Raises ValueError if unsupported."""
    adapter = get_adapter(engine.dialect.name)
    if adapter is None:
        raise ValueError(
            f"Unsupported source dialect {engine.dialect.name!r}; expected one of {', '.join(supported_dialects())}"
        )
    return SqlSourceCatalog(engine, adapter)


def supported_dialects() -> tuple:
    """Return tuple of supported dialect names."""
    return tuple(_ADAPTERS.keys())


__all__ = [
    "CatalogAdapter",
    "JsonSourceCatalog",
    "SourceCatalog",
    "SqlSourceCatalog",
    "catalog_for_engine",
    "get_adapter",
    "supported_dialects",
]
