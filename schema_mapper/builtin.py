"""Builtin datatype mapping from the source engine's native types."""

from typing import Dict, Optional, Tuple

from .errors import ResolutionLogicError
from .models import ColumnMetadata
from .rules import CompiledBuiltin, norm


def map_builtin(column: ColumnMetadata, builtin: Dict[str, Tuple[CompiledBuiltin, ...]]) -> str:
    """Return the builtin target type for ``column``.

    Entries registered for the native type are tried in catalog order and
    the first whose attribute pattern matches wins. Without a match the
    column's origin type (e.g. ``DECIMAL(10,2)``) is echoed upper-cased.
    """
    attributes = column.attributes()
    for entry in builtin.get(norm(column.native_type), ()):
        if entry.matches(attributes):
            return _render(entry, column)
    return column.origin_type()


def _render(entry: CompiledBuiltin, column: ColumnMetadata) -> str:
    if not entry.placeholders:
        return entry.target_type.upper()
    values: Dict[str, Optional[int]] = {
        "length": column.length,
        "precision": column.precision,
        "scale": column.scale,
        "datetime_precision": column.datetime_precision,
    }
    missing = [p for p in entry.placeholders if values[p] is None]
    if missing:
        raise ResolutionLogicError(
            f"builtin type {entry.target_type!r} needs {', '.join(missing)} "
            f"but column {column.name} ({column.origin_type()}) has none"
        )
    try:
        return entry.target_type.format(**values).upper()
    except (ValueError, KeyError, IndexError) as e:
        raise ResolutionLogicError(
            f"builtin type {entry.target_type!r} cannot be rendered for column {column.name}: {e}"
        ) from e
