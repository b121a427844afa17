"""
Source catalog adapter base class.

Each source database (MySQL, PostgreSQL) implements this interface to read
column metadata for one table from its information schema.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, FrozenSet, List, Optional, Protocol

from sqlalchemy import TextClause
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import CatalogFetchError, ResolutionCancelled
from ..models import ColumnMetadata

logger = logging.getLogger(__name__)


class SourceCatalog(Protocol):
    def table_columns(
        self, schema: str, table: str, cancel: Optional[threading.Event] = None
    ) -> List[ColumnMetadata]: ...


class CatalogAdapter(ABC):
    """Abstract base for source catalog adapters."""

    # Native types whose length / precision+scale are part of the declared type.
    LENGTH_TYPES: FrozenSet[str] = frozenset()
    PRECISION_TYPES: FrozenSet[str] = frozenset()
    DATETIME_TYPES: FrozenSet[str] = frozenset()

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Quote a single identifier (table, column, schema)."""
        pass

    def quote_table(self, schema: str, table: str) -> str:
        """Quote schema.table for use in FROM/JOIN clauses."""
        if schema:
            return f"{self.quote_identifier(schema)}.{self.quote_identifier(table)}"
        return self.quote_identifier(table)

    @abstractmethod
    def default_schema(self) -> str:
        """Return the default schema name for this dialect."""
        pass

    @abstractmethod
    def columns_query(self) -> TextClause:
        """Return the column metadata query, bound by ``:schema`` and ``:table``.

        Selected columns, in order: name, type, length, precision, scale,
        nullable (YES/NO), default, comment, datetime precision.
        """
        pass

    def to_column(self, row: Any) -> ColumnMetadata:
        native_type = str(row[1]).strip().upper()
        length = as_int(row[2]) if native_type in self.LENGTH_TYPES else None
        precision = scale = None
        if native_type in self.PRECISION_TYPES:
            precision, scale = as_int(row[3]), as_int(row[4])
        datetime_precision = as_int(row[8]) if native_type in self.DATETIME_TYPES else None
        return ColumnMetadata(
            name=str(row[0]),
            native_type=native_type,
            length=length,
            precision=precision,
            scale=scale,
            nullable=str(row[5]).upper() in ("YES", "Y", "TRUE", "1"),
            raw_default=self.to_default(row[6]),
            comment=str(row[7] or ""),
            datetime_precision=datetime_precision,
        )

    def to_default(self, value: Any) -> Optional[str]:
        """Return the column default as reported by the catalog, None when unset."""
        return None if value is None else str(value)

    def fetch_table_columns(self, engine: Engine, schema: str, table: str) -> List[ColumnMetadata]:
        with engine.connect() as conn:
            rows = conn.execute(self.columns_query(), {"schema": schema, "table": table}).fetchall()
        return [self.to_column(r) for r in rows]


def as_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(value)


class SqlSourceCatalog:
    """Source catalog reading column metadata through a SQLAlchemy engine."""

    def __init__(self, engine: Engine, adapter: CatalogAdapter):
        self.engine = engine
        self.adapter = adapter

    def table_columns(
        self, schema: str, table: str, cancel: Optional[threading.Event] = None
    ) -> List[ColumnMetadata]:
        if cancel is not None and cancel.is_set():
            raise ResolutionCancelled("column fetch cancelled", table=table)
        schema = schema or self.adapter.default_schema()
        if not schema:
            raise CatalogFetchError(
                f"no source schema given and {type(self.adapter).__name__} has no default schema", table=table
            )
        try:
            columns = self.adapter.fetch_table_columns(self.engine, schema, table)
        except SQLAlchemyError as e:
            raise CatalogFetchError(f"could not fetch columns from {schema}: {e}", table=table) from e
        if not columns:
            logger.warning(f"No columns found for {self.adapter.quote_table(schema, table)}")
        return columns
