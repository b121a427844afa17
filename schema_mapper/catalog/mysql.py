"""MySQL / TiDB / MariaDB catalog adapters."""

from typing import Any, Optional

from sqlalchemy import TextClause, text

from .base import CatalogAdapter


class MysqlAdapter(CatalogAdapter):
    """MySQL / TiDB catalog adapter."""

    LENGTH_TYPES = frozenset({"CHAR", "VARCHAR", "BINARY", "VARBINARY"})
    PRECISION_TYPES = frozenset({"DECIMAL", "NUMERIC"})
    DATETIME_TYPES = frozenset({"TIME", "DATETIME", "TIMESTAMP"})

    def quote_identifier(self, name: str) -> str:
        return "`" + str(name).replace("`", "``") + "`"

    def default_schema(self) -> str:
        # a MySQL schema is a database; there is no sensible one to assume
        return ""

    def columns_query(self) -> TextClause:
        return text("""
            SELECT COLUMN_NAME, DATA_TYPE, CHARACTER_MAXIMUM_LENGTH, NUMERIC_PRECISION,
                   NUMERIC_SCALE, IS_NULLABLE, COLUMN_DEFAULT, COLUMN_COMMENT, DATETIME_PRECISION
            FROM information_schema.COLUMNS
            WHERE TABLE_SCHEMA = :schema AND TABLE_NAME = :table
            ORDER BY ORDINAL_POSITION
        """)


class MariadbAdapter(MysqlAdapter):
    """MariaDB catalog adapter.

    MariaDB (10.2.7+) reports ``COLUMN_DEFAULT`` as an SQL expression: string
    literals arrive quoted (``'new'``) and a NULL default as the word ``NULL``.
    Defaults are brought back to the MySQL form before normalization.
    """

    def to_default(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        raw = str(value)
        if raw.upper() == "NULL":
            return None
        if len(raw) >= 2 and raw[0] == raw[-1] == "'":
            return raw[1:-1].replace("''", "'").replace("\\'", "'")
        return raw
