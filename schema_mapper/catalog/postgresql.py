"""PostgreSQL catalog adapter."""

from sqlalchemy import TextClause, text

from .base import CatalogAdapter


class PostgresqlAdapter(CatalogAdapter):
    """PostgreSQL catalog adapter. Types are reported by ``udt_name`` (int4, varchar, ...)."""

    LENGTH_TYPES = frozenset({"VARCHAR", "BPCHAR"})
    PRECISION_TYPES = frozenset({"NUMERIC"})
    DATETIME_TYPES = frozenset({"TIME", "TIMETZ", "TIMESTAMP", "TIMESTAMPTZ"})

    def quote_identifier(self, name: str) -> str:
        return '"' + str(name).replace('"', '""') + '"'

    def default_schema(self) -> str:
        return "public"

    def columns_query(self) -> TextClause:
        return text("""
            SELECT c.column_name, c.udt_name, c.character_maximum_length, c.numeric_precision,
                   c.numeric_scale, c.is_nullable, c.column_default,
                   col_description(format('%I.%I', c.table_schema, c.table_name)::regclass::oid,
                                   c.ordinal_position) AS comment,
                   c.datetime_precision
            FROM information_schema.columns c
            WHERE c.table_schema = :schema AND c.table_name = :table
            ORDER BY c.ordinal_position
        """)
