"""Rule and column metadata types shared by the store, catalog and resolver."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

ResolvedTableNameMap = Dict[str, str]
ResolvedDatatypeMap = Dict[str, Dict[str, str]]
ResolvedDefaultMap = Dict[str, Dict[str, str]]


@dataclass(frozen=True)
class TableNameRule:
    source_table: str
    target_table: str


@dataclass(frozen=True)
class SchemaDatatypeRule:
    source_type: str
    target_type: str


@dataclass(frozen=True)
class TableDatatypeRule:
    table: str
    source_type: str
    target_type: str


@dataclass(frozen=True)
class ColumnDatatypeRule:
    table: str
    column: str
    source_type: str
    target_type: str


@dataclass(frozen=True)
class BuiltinDatatype:
    """Builtin source type -> target type entry.

    ``attributes_pattern`` is a regex matched against the column attribute
    suffix (``"(10,2)"``, ``"(255)"`` or ``""``); empty matches every column.
    ``target_type`` may reference ``{length}``, ``{precision}``, ``{scale}``
    and ``{datetime_precision}``; format specs and conversions are rejected.
    """

    source_type: str
    target_type: str
    attributes_pattern: str = ""


@dataclass(frozen=True)
class GlobalDefaultRule:
    source_type: str
    source_default: str
    target_default: str


@dataclass(frozen=True)
class ColumnDefaultRule:
    table: str
    column: str
    target_default: str


@dataclass(frozen=True)
class ColumnMetadata:
    """One column row as returned by a source catalog."""

    name: str
    native_type: str
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    nullable: bool = True
    raw_default: Optional[str] = None
    comment: str = ""
    # fractional seconds digits; only set for time/datetime/timestamp types
    datetime_precision: Optional[int] = None

    def attributes(self) -> str:
        """Render the attribute suffix, e.g. ``(10,2)``, ``(255)``, ``(6)`` or ``""``.

        A datetime precision of 0 is the engine default and renders nothing,
        so ``DATETIME`` and ``DATETIME(0)`` share the origin type ``DATETIME``.
        """
        if self.precision is not None and self.scale is not None:
            return f"({self.precision},{self.scale})"
        if self.precision is not None:
            return f"({self.precision})"
        if self.length is not None:
            return f"({self.length})"
        if self.datetime_precision:
            return f"({self.datetime_precision})"
        return ""

    def origin_type(self) -> str:
        return f"{self.native_type.strip().upper()}{self.attributes()}"


@dataclass
class ResolvedMappings:
    """The three maps produced by one resolution run."""

    table_names: ResolvedTableNameMap = field(default_factory=dict)
    datatypes: ResolvedDatatypeMap = field(default_factory=dict)
    defaults: ResolvedDefaultMap = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table_names": dict(self.table_names),
            "datatypes": {t: dict(cols) for t, cols in self.datatypes.items()},
            "defaults": {t: dict(cols) for t, cols in self.defaults.items()},
        }
