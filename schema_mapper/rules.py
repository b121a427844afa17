"""Case-insensitive lookup indexes over loaded rule collections.

Rules are loaded once per run and indexed here; the indexes are read-only
afterwards and shared by every worker thread without locking. When several
rules share a key the first one returned by the store wins.
"""

import re
import string
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Pattern, Tuple

from .errors import ResolutionLogicError
from .models import (
    BuiltinDatatype,
    ColumnDatatypeRule,
    ColumnDefaultRule,
    GlobalDefaultRule,
    SchemaDatatypeRule,
    TableDatatypeRule,
    TableNameRule,
)

BUILTIN_PLACEHOLDERS = frozenset({"length", "precision", "scale", "datetime_precision"})


def norm(value: Optional[str]) -> str:
    """Normalize an identifier or type name for comparison."""
    return (value or "").strip().upper()


@dataclass(frozen=True)
class CompiledBuiltin:
    target_type: str
    pattern: Optional[Pattern[str]]
    placeholders: Tuple[str, ...]

    def matches(self, attributes: str) -> bool:
        return self.pattern is None or self.pattern.fullmatch(attributes) is not None


def _placeholders(target_type: str) -> Tuple[str, ...]:
    try:
        fields = [(f, spec, conv) for _, f, spec, conv in string.Formatter().parse(target_type) if f is not None]
    except ValueError as e:
        raise ResolutionLogicError(f"malformed builtin target type {target_type!r}: {e}") from e
    formatted = [f for f, spec, conv in fields if spec or conv]
    if formatted:
        raise ResolutionLogicError(
            f"builtin target type {target_type!r} uses format spec or conversion on: {', '.join(formatted)}"
        )
    names = [f for f, _, _ in fields]
    unknown = [n for n in names if n not in BUILTIN_PLACEHOLDERS]
    if unknown:
        raise ResolutionLogicError(
            f"builtin target type {target_type!r} uses unknown placeholder(s): {', '.join(unknown)}"
        )
    return tuple(names)


def compile_builtin(entry: BuiltinDatatype) -> CompiledBuiltin:
    pattern = None
    if entry.attributes_pattern:
        try:
            pattern = re.compile(entry.attributes_pattern, re.IGNORECASE)
        except re.error as e:
            raise ResolutionLogicError(
                f"invalid attributes pattern {entry.attributes_pattern!r} for builtin type {entry.source_type}: {e}"
            ) from e
    return CompiledBuiltin(
        target_type=entry.target_type.strip(),
        pattern=pattern,
        placeholders=_placeholders(entry.target_type),
    )


def index_table_names(rules: Iterable[TableNameRule]) -> Dict[str, str]:
    result: Dict[str, str] = {}
    for r in rules:
        result.setdefault(norm(r.source_table), norm(r.target_table))
    return result


@dataclass(frozen=True)
class DatatypeRules:
    """Indexed datatype rules for one (source, target, schema) scope."""

    schema: Dict[str, str] = field(default_factory=dict)
    table: Dict[Tuple[str, str], str] = field(default_factory=dict)
    column: Dict[Tuple[str, str, str], str] = field(default_factory=dict)
    builtin: Dict[str, Tuple[CompiledBuiltin, ...]] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        schema_rules: Iterable[SchemaDatatypeRule] = (),
        table_rules: Iterable[TableDatatypeRule] = (),
        column_rules: Iterable[ColumnDatatypeRule] = (),
        builtin: Iterable[BuiltinDatatype] = (),
    ) -> "DatatypeRules":
        by_schema: Dict[str, str] = {}
        for r in schema_rules:
            if r.target_type:
                by_schema.setdefault(norm(r.source_type), r.target_type.strip())

        by_table: Dict[Tuple[str, str], str] = {}
        for r in table_rules:
            if r.target_type:
                by_table.setdefault((norm(r.table), norm(r.source_type)), r.target_type.strip())

        by_column: Dict[Tuple[str, str, str], str] = {}
        for r in column_rules:
            if r.target_type:
                key = (norm(r.table), norm(r.column), norm(r.source_type))
                by_column.setdefault(key, r.target_type.strip())

        grouped: Dict[str, list] = {}
        for entry in builtin:
            grouped.setdefault(norm(entry.source_type), []).append(compile_builtin(entry))

        return cls(
            schema=by_schema,
            table=by_table,
            column=by_column,
            builtin={k: tuple(v) for k, v in grouped.items()},
        )


@dataclass(frozen=True)
class DefaultRules:
    """Indexed default value rules. An empty global source type matches any type."""

    global_rules: Dict[Tuple[str, str], str] = field(default_factory=dict)
    column: Dict[Tuple[str, str], str] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        global_rules: Iterable[GlobalDefaultRule] = (),
        column_rules: Iterable[ColumnDefaultRule] = (),
    ) -> "DefaultRules":
        by_global: Dict[Tuple[str, str], str] = {}
        for r in global_rules:
            by_global.setdefault((norm(r.source_type), (r.source_default or "").upper()), r.target_default)
        by_column: Dict[Tuple[str, str], str] = {}
        for r in column_rules:
            by_column.setdefault((norm(r.table), norm(r.column)), r.target_default)
        return cls(global_rules=by_global, column=by_column)
