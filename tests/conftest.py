"""Shared test fixtures: in-memory rule store and source catalog."""

import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

import pytest

from schema_mapper.errors import ResolutionCancelled
from schema_mapper.models import (
    BuiltinDatatype,
    ColumnDatatypeRule,
    ColumnDefaultRule,
    ColumnMetadata,
    GlobalDefaultRule,
    SchemaDatatypeRule,
    TableDatatypeRule,
    TableNameRule,
)


@dataclass
class FakeRuleStore:
    table_names: List[TableNameRule] = field(default_factory=list)
    schema_types: List[SchemaDatatypeRule] = field(default_factory=list)
    table_types: List[TableDatatypeRule] = field(default_factory=list)
    column_types: List[ColumnDatatypeRule] = field(default_factory=list)
    builtin: List[BuiltinDatatype] = field(default_factory=list)
    global_defaults: List[GlobalDefaultRule] = field(default_factory=list)
    column_defaults: List[ColumnDefaultRule] = field(default_factory=list)
    fail_on: Optional[str] = None
    calls: List[str] = field(default_factory=list)

    def _get(self, name, value):
        self.calls.append(name)
        if self.fail_on == name:
            raise ConnectionError(f"{name} unavailable")
        return list(value)

    def table_name_rules(self, source_db, target_db, source_schema, target_schema):
        return self._get("table_name_rules", self.table_names)

    def schema_datatype_rules(self, source_db, target_db, source_schema):
        return self._get("schema_datatype_rules", self.schema_types)

    def table_datatype_rules(self, source_db, target_db, source_schema):
        return self._get("table_datatype_rules", self.table_types)

    def column_datatype_rules(self, source_db, target_db, source_schema):
        return self._get("column_datatype_rules", self.column_types)

    def builtin_datatypes(self, source_db, target_db):
        return self._get("builtin_datatypes", self.builtin)

    def global_default_rules(self, source_db, target_db):
        return self._get("global_default_rules", self.global_defaults)

    def column_default_rules(self, source_db, target_db, source_schema):
        return self._get("column_default_rules", self.column_defaults)


class FakeCatalog:
    """Serves columns per table; ``failing`` tables raise, ``delay`` slows healthy ones."""

    def __init__(self, tables: Dict[str, List[ColumnMetadata]], failing: Set[str] = frozenset(), delay: float = 0.0):
        self.tables = tables
        self.failing = set(failing)
        self.delay = delay
        self.fetched: List[str] = []
        self._lock = threading.Lock()

    def table_columns(self, schema, table, cancel=None):
        if cancel is not None and cancel.is_set():
            raise ResolutionCancelled("cancelled", table=table)
        with self._lock:
            self.fetched.append(table)
        if table in self.failing:
            raise OSError(f"lost connection while reading {table}")
        if self.delay:
            time.sleep(self.delay)
        return list(self.tables[table])


def col(name, native_type, length=None, precision=None, scale=None, default=None, datetime_precision=None):
    return ColumnMetadata(
        name=name,
        native_type=native_type,
        length=length,
        precision=precision,
        scale=scale,
        raw_default=default,
        datetime_precision=datetime_precision,
    )


@pytest.fixture
def builtin_catalog():
    return [
        BuiltinDatatype("DECIMAL", "NUMBER"),
        BuiltinDatatype("INT", "NUMBER(10,0)"),
        BuiltinDatatype("VARCHAR", "VARCHAR2({length} CHAR)", r"\(\d+\)"),
        BuiltinDatatype("DATETIME", "DATE"),
        BuiltinDatatype("TIMESTAMP", "TIMESTAMP"),
    ]


@pytest.fixture
def sample_tables():
    return {
        "orders": [
            col("id", "INT"),
            col("amount", "DECIMAL", precision=10, scale=2),
            col("status", "VARCHAR", length=20, default="new"),
            col("created_at", "DATETIME", default="CURRENT_TIMESTAMP"),
        ],
        "customers": [
            col("id", "INT"),
            col("name", "VARCHAR", length=100),
            col("joined", "DATETIME", default="2020-01-01 00:00:00"),
        ],
        "payments": [
            col("id", "INT"),
            col("paid_at", "TIMESTAMP", default="now()"),
            col("total", "DECIMAL", precision=12, scale=4),
        ],
    }


@pytest.fixture
def store(builtin_catalog):
    return FakeRuleStore(builtin=builtin_catalog)
