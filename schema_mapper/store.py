"""Rule store: where table name, datatype and default value overrides live.

``RuleStore`` is the read-only interface the resolver depends on.
``SqlRuleStore`` keeps the rules in a metadata database reachable through a
SQLAlchemy engine (SQLite, MySQL, PostgreSQL, ...).
"""

import logging
from typing import Any, Dict, List, Protocol, Sequence, Tuple

from sqlalchemy import Column, Integer, MetaData, String, Table, func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .errors import RuleStoreError
from .models import (
    BuiltinDatatype,
    ColumnDatatypeRule,
    ColumnDefaultRule,
    GlobalDefaultRule,
    SchemaDatatypeRule,
    TableDatatypeRule,
    TableNameRule,
)

logger = logging.getLogger(__name__)


class RuleStore(Protocol):
    def table_name_rules(self, source_db: str, target_db: str, source_schema: str, target_schema: str) -> List[TableNameRule]: ...

    def schema_datatype_rules(self, source_db: str, target_db: str, source_schema: str) -> List[SchemaDatatypeRule]: ...

    def table_datatype_rules(self, source_db: str, target_db: str, source_schema: str) -> List[TableDatatypeRule]: ...

    def column_datatype_rules(self, source_db: str, target_db: str, source_schema: str) -> List[ColumnDatatypeRule]: ...

    def builtin_datatypes(self, source_db: str, target_db: str) -> List[BuiltinDatatype]: ...

    def global_default_rules(self, source_db: str, target_db: str) -> List[GlobalDefaultRule]: ...

    def column_default_rules(self, source_db: str, target_db: str, source_schema: str) -> List[ColumnDefaultRule]: ...


metadata = MetaData()


def _scope_columns(with_schema: bool = True) -> List[Column]:
    cols = [
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("db_type_s", String(32), nullable=False),
        Column("db_type_t", String(32), nullable=False),
    ]
    if with_schema:
        cols.append(Column("schema_name_s", String(128), nullable=False))
    return cols


table_name_rule = Table(
    "table_name_rule", metadata,
    *_scope_columns(),
    Column("schema_name_t", String(128), nullable=False),
    Column("table_name_s", String(128), nullable=False),
    Column("table_name_t", String(128), nullable=False),
)

schema_datatype_rule = Table(
    "schema_datatype_rule", metadata,
    *_scope_columns(),
    Column("column_type_s", String(128), nullable=False),
    Column("column_type_t", String(128), nullable=False),
)

table_datatype_rule = Table(
    "table_datatype_rule", metadata,
    *_scope_columns(),
    Column("table_name_s", String(128), nullable=False),
    Column("column_type_s", String(128), nullable=False),
    Column("column_type_t", String(128), nullable=False),
)

column_datatype_rule = Table(
    "column_datatype_rule", metadata,
    *_scope_columns(),
    Column("table_name_s", String(128), nullable=False),
    Column("column_name_s", String(128), nullable=False),
    Column("column_type_s", String(128), nullable=False),
    Column("column_type_t", String(128), nullable=False),
)

builtin_datatype_rule = Table(
    "builtin_datatype_rule", metadata,
    *_scope_columns(with_schema=False),
    Column("datatype_name_s", String(128), nullable=False),
    Column("datatype_name_t", String(128), nullable=False),
    Column("attributes_pattern", String(256), nullable=False, default=""),
)

global_default_rule = Table(
    "global_default_rule", metadata,
    *_scope_columns(with_schema=False),
    Column("column_type_s", String(128), nullable=False, default=""),
    Column("default_value_s", String(256), nullable=False),
    Column("default_value_t", String(256), nullable=False),
)

column_default_rule = Table(
    "column_default_rule", metadata,
    *_scope_columns(),
    Column("table_name_s", String(128), nullable=False),
    Column("column_name_s", String(128), nullable=False),
    Column("default_value_t", String(256), nullable=False),
)


# (source type, target type, attributes pattern), tried top to bottom per type.
BUILTIN_MYSQL_ORACLE: Tuple[Tuple[str, str, str], ...] = (
    ("TINYINT", "NUMBER(3,0)", ""),
    ("SMALLINT", "NUMBER(5,0)", ""),
    ("MEDIUMINT", "NUMBER(7,0)", ""),
    ("INT", "NUMBER(10,0)", ""),
    ("INTEGER", "NUMBER(10,0)", ""),
    ("BIGINT", "NUMBER(19,0)", ""),
    ("DECIMAL", "NUMBER({precision},{scale})", r"\(\d+,\d+\)"),
    ("DECIMAL", "NUMBER", ""),
    ("NUMERIC", "NUMBER({precision},{scale})", r"\(\d+,\d+\)"),
    ("NUMERIC", "NUMBER", ""),
    ("FLOAT", "BINARY_FLOAT", ""),
    ("DOUBLE", "BINARY_DOUBLE", ""),
    ("REAL", "BINARY_DOUBLE", ""),
    ("CHAR", "CHAR({length})", r"\((\d{1,3}|1\d{3}|2000)\)"),
    ("CHAR", "CLOB", ""),
    ("VARCHAR", "VARCHAR2({length} CHAR)", r"\((\d{1,3}|[1-3]\d{3}|4000)\)"),
    ("VARCHAR", "CLOB", ""),
    ("BINARY", "RAW({length})", r"\((\d{1,3}|1\d{3}|2000)\)"),
    ("BINARY", "BLOB", ""),
    ("VARBINARY", "RAW({length})", r"\((\d{1,3}|1\d{3}|2000)\)"),
    ("VARBINARY", "BLOB", ""),
    ("TINYTEXT", "VARCHAR2(255 CHAR)", ""),
    ("TEXT", "CLOB", ""),
    ("MEDIUMTEXT", "CLOB", ""),
    ("LONGTEXT", "CLOB", ""),
    ("TINYBLOB", "BLOB", ""),
    ("BLOB", "BLOB", ""),
    ("MEDIUMBLOB", "BLOB", ""),
    ("LONGBLOB", "BLOB", ""),
    ("DATE", "DATE", ""),
    ("TIME", "DATE", ""),
    ("DATETIME", "TIMESTAMP({datetime_precision})", r"\([1-6]\)"),
    ("DATETIME", "DATE", ""),
    ("TIMESTAMP", "TIMESTAMP({datetime_precision})", r"\([1-6]\)"),
    ("TIMESTAMP", "TIMESTAMP", ""),
    ("YEAR", "NUMBER", ""),
    ("JSON", "CLOB", ""),
    ("ENUM", "VARCHAR2(4000)", ""),
    ("SET", "VARCHAR2(4000)", ""),
    ("BIT", "RAW(8)", ""),
)

# (source type or "" for any, source default, target default)
GLOBAL_DEFAULTS_MYSQL_ORACLE: Tuple[Tuple[str, str, str], ...] = (
    ("", "CURRENT_TIMESTAMP", "SYSDATE"),
    ("", "NOW()", "SYSDATE"),
    ("", "CURRENT_DATE", "TRUNC(SYSDATE)"),
    ("TIMESTAMP", "CURRENT_TIMESTAMP", "SYSTIMESTAMP"),
)

BUILTIN_SEEDS: Dict[Tuple[str, str], Tuple[tuple, tuple]] = {
    ("MYSQL", "ORACLE"): (BUILTIN_MYSQL_ORACLE, GLOBAL_DEFAULTS_MYSQL_ORACLE),
}


class SqlRuleStore:
    """Rule store backed by the metadata tables defined in this module."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def create_tables(self) -> None:
        metadata.create_all(self.engine)

    def seed_builtin_rules(self, source_db: str, target_db: str) -> int:
        """Install the builtin catalog and global defaults for a pair if absent.

        Returns the number of rows inserted.
        """
        src, tgt = source_db.upper(), target_db.upper()
        seed = BUILTIN_SEEDS.get((src, tgt))
        if seed is None:
            logger.warning(f"No builtin rules shipped for {src} -> {tgt}")
            return 0
        datatypes, defaults = seed
        inserted = 0
        try:
            with self.engine.begin() as conn:
                existing = conn.execute(
                    select(func.count()).select_from(builtin_datatype_rule).where(
                        builtin_datatype_rule.c.db_type_s == src,
                        builtin_datatype_rule.c.db_type_t == tgt,
                    )
                ).scalar_one()
                if not existing:
                    conn.execute(insert(builtin_datatype_rule), [
                        {"db_type_s": src, "db_type_t": tgt, "datatype_name_s": s,
                         "datatype_name_t": t, "attributes_pattern": p}
                        for s, t, p in datatypes
                    ])
                    inserted += len(datatypes)
                existing = conn.execute(
                    select(func.count()).select_from(global_default_rule).where(
                        global_default_rule.c.db_type_s == src,
                        global_default_rule.c.db_type_t == tgt,
                    )
                ).scalar_one()
                if not existing:
                    conn.execute(insert(global_default_rule), [
                        {"db_type_s": src, "db_type_t": tgt, "column_type_s": ct,
                         "default_value_s": s, "default_value_t": t}
                        for ct, s, t in defaults
                    ])
                    inserted += len(defaults)
        except SQLAlchemyError as e:
            raise RuleStoreError(f"could not seed builtin rules for {src} -> {tgt}: {e}") from e
        logger.info(f"Seeded {inserted} builtin rule rows for {src} -> {tgt}")
        return inserted

    def _fetch(self, table: Table, source_db: str, target_db: str, **scope: str) -> Sequence[Any]:
        stmt = select(table).where(
            func.upper(table.c.db_type_s) == source_db.upper(),
            func.upper(table.c.db_type_t) == target_db.upper(),
        )
        for col, value in scope.items():
            stmt = stmt.where(func.upper(table.c[col]) == value.upper())
        stmt = stmt.order_by(table.c.id)
        try:
            with self.engine.connect() as conn:
                return conn.execute(stmt).mappings().fetchall()
        except SQLAlchemyError as e:
            raise RuleStoreError(f"could not read {table.name} for {source_db} -> {target_db}: {e}") from e

    def table_name_rules(self, source_db: str, target_db: str, source_schema: str, target_schema: str) -> List[TableNameRule]:
        rows = self._fetch(table_name_rule, source_db, target_db,
                           schema_name_s=source_schema, schema_name_t=target_schema)
        return [TableNameRule(r["table_name_s"], r["table_name_t"]) for r in rows]

    def schema_datatype_rules(self, source_db: str, target_db: str, source_schema: str) -> List[SchemaDatatypeRule]:
        rows = self._fetch(schema_datatype_rule, source_db, target_db, schema_name_s=source_schema)
        return [SchemaDatatypeRule(r["column_type_s"], r["column_type_t"]) for r in rows]

    def table_datatype_rules(self, source_db: str, target_db: str, source_schema: str) -> List[TableDatatypeRule]:
        rows = self._fetch(table_datatype_rule, source_db, target_db, schema_name_s=source_schema)
        return [TableDatatypeRule(r["table_name_s"], r["column_type_s"], r["column_type_t"]) for r in rows]

    def column_datatype_rules(self, source_db: str, target_db: str, source_schema: str) -> List[ColumnDatatypeRule]:
        rows = self._fetch(column_datatype_rule, source_db, target_db, schema_name_s=source_schema)
        return [
            ColumnDatatypeRule(r["table_name_s"], r["column_name_s"], r["column_type_s"], r["column_type_t"])
            for r in rows
        ]

    def builtin_datatypes(self, source_db: str, target_db: str) -> List[BuiltinDatatype]:
        rows = self._fetch(builtin_datatype_rule, source_db, target_db)
        return [
            BuiltinDatatype(r["datatype_name_s"], r["datatype_name_t"], r["attributes_pattern"] or "")
            for r in rows
        ]

    def global_default_rules(self, source_db: str, target_db: str) -> List[GlobalDefaultRule]:
        rows = self._fetch(global_default_rule, source_db, target_db)
        return [
            GlobalDefaultRule(r["column_type_s"] or "", r["default_value_s"], r["default_value_t"])
            for r in rows
        ]

    def column_default_rules(self, source_db: str, target_db: str, source_schema: str) -> List[ColumnDefaultRule]:
        rows = self._fetch(column_default_rule, source_db, target_db, schema_name_s=source_schema)
        return [ColumnDefaultRule(r["table_name_s"], r["column_name_s"], r["default_value_t"]) for r in rows]
