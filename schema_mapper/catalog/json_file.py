"""Source catalog over a schema.json export (``{"tables": [{"table", "columns"}]}``)."""

from __future__ import annotations

import json
import re
import threading
from pathlib import Path
from typing import Any

from ..errors import CatalogFetchError, ResolutionCancelled
from ..models import ColumnMetadata
from .base import as_int

_TYPE_RE = re.compile(r"^\s*([A-Za-z][A-Za-z0-9_ ]*?)\s*(?:\(\s*(\d+)\s*(?:,\s*(\d+)\s*)?\))?\s*$")
_PRECISION_TYPES = {"DECIMAL", "NUMERIC", "NUMBER"}
_DATETIME_TYPES = {"TIME", "TIMETZ", "DATETIME", "TIMESTAMP", "TIMESTAMPTZ"}


def parse_column(raw: dict[str, Any]) -> ColumnMetadata:
    """Build column metadata from a schema.json column entry.

    ``type`` may carry its attributes (``numeric(10,2)``, ``varchar(255)``);
    explicit ``length``/``precision``/``scale``/``datetime_precision``
    keys take precedence.
    """
    type_str = str(raw.get("type") or "")
    m = _TYPE_RE.match(type_str)
    if m:
        native_type = m.group(1).strip().upper()
        first, second = as_int(m.group(2)), as_int(m.group(3))
    else:
        native_type, first, second = type_str.strip().upper(), None, None

    length = precision = scale = datetime_precision = None
    if second is not None:
        precision, scale = first, second
    elif first is not None:
        if native_type in _PRECISION_TYPES:
            precision = first
        elif native_type in _DATETIME_TYPES:
            datetime_precision = first
        else:
            length = first

    if raw.get("length") is not None:
        length = as_int(raw["length"])
    if raw.get("precision") is not None:
        precision = as_int(raw["precision"])
    if raw.get("scale") is not None:
        scale = as_int(raw["scale"])
    if raw.get("datetime_precision") is not None:
        datetime_precision = as_int(raw["datetime_precision"])

    default = raw.get("default")
    return ColumnMetadata(
        name=str(raw["name"]),
        native_type=native_type,
        length=length,
        precision=precision,
        scale=scale,
        nullable=bool(raw.get("nullable", True)),
        raw_default=None if default is None else str(default),
        comment=str(raw.get("description") or raw.get("comment") or ""),
        datetime_precision=datetime_precision,
    )


class JsonSourceCatalog:
    """Serves column metadata from a schema.json document; table lookup is case-insensitive."""

    def __init__(self, document: dict[str, Any]):
        self._by_lower: dict[str, list[dict[str, Any]]] = {}
        self._names: list[str] = []
        for t in document.get("tables", []):
            self._names.append(str(t["table"]))
            self._by_lower[str(t["table"]).lower()] = list(t.get("columns", []))

    @classmethod
    def from_path(cls, path: str | Path) -> JsonSourceCatalog:
        with open(path, encoding="utf-8") as f:
            return cls(json.load(f))

    def table_names(self) -> list[str]:
        return list(self._names)

    def table_columns(
        self, schema: str, table: str, cancel: threading.Event | None = None
    ) -> list[ColumnMetadata]:
        if cancel is not None and cancel.is_set():
            raise ResolutionCancelled("column fetch cancelled", table=table)
        columns = self._by_lower.get((table or "").lower())
        if columns is None:
            raise CatalogFetchError(f"not present in schema document for {schema}", table=table)
        try:
            return [parse_column(c) for c in columns]
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogFetchError(f"malformed column entry: {e}", table=table) from e
