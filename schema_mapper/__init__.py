"""Rule-based table name, datatype and default value mapping for schema migration."""

from .engine import SchemaChange
from .errors import (
    CatalogFetchError,
    MappingError,
    ResolutionCancelled,
    ResolutionLogicError,
    RuleStoreError,
)
from .models import ColumnMetadata, ResolvedMappings
from .store import RuleStore, SqlRuleStore

__version__ = "0.1.0"

__all__ = [
    "CatalogFetchError",
    "ColumnMetadata",
    "MappingError",
    "ResolutionCancelled",
    "ResolutionLogicError",
    "ResolvedMappings",
    "RuleStore",
    "RuleStoreError",
    "SchemaChange",
    "SqlRuleStore",
]
