"""Cascade resolution of column datatypes and default values.

Datatypes: column rule > table rule > schema rule > builtin mapping.
Defaults: column rule > global rule > normalized source literal.

A rule's source type is matched against the column's origin type
(``DECIMAL(10,2)``) first and its bare native type (``DECIMAL``) second.
"""

from typing import Optional, Tuple

from .builtin import map_builtin
from .models import ColumnMetadata
from .rules import DatatypeRules, DefaultRules, norm


def _source_type_keys(column: ColumnMetadata) -> Tuple[str, ...]:
    origin = column.origin_type()
    bare = norm(column.native_type)
    return (origin,) if origin == bare else (origin, bare)


def column_candidate(table: str, column: ColumnMetadata, rules: DatatypeRules, base: str) -> str:
    t, c = norm(table), norm(column.name)
    for key in _source_type_keys(column):
        found = rules.column.get((t, c, key))
        if found:
            return found.upper()
    return base


def table_or_schema_candidate(table: str, column: ColumnMetadata, rules: DatatypeRules, base: str) -> str:
    t = norm(table)
    keys = _source_type_keys(column)
    for key in keys:
        found = rules.table.get((t, key))
        if found:
            return found.upper()
    for key in keys:
        found = rules.schema.get(key)
        if found:
            return found.upper()
    return base


def resolve_datatype(table: str, column: ColumnMetadata, rules: DatatypeRules) -> str:
    base = map_builtin(column, rules.builtin).upper()
    other = table_or_schema_candidate(table, column, rules, base)
    if not rules.column:
        # no column-scope rules: column candidate is always base
        return other
    col = column_candidate(table, column, rules, base)
    if col != base:
        return col
    if other != base:
        return other
    return base


def resolve_default(
    table: str,
    column: ColumnMetadata,
    literal: str,
    rules: DefaultRules,
) -> str:
    """Resolve the target default for an already normalized ``literal``."""
    found: Optional[str] = rules.column.get((norm(table), norm(column.name)))
    if found is not None:
        return found
    lit = literal.upper()
    for type_key in (norm(column.native_type), ""):
        found = rules.global_rules.get((type_key, lit))
        if found is not None:
            return found
    return literal
