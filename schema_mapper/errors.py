"""Errors raised while resolving schema mappings."""

from typing import Optional


class MappingError(Exception):
    """Base class for all mapping failures.

    ``table`` is set when the failure belongs to a single source table.
    """

    def __init__(self, message: str, table: Optional[str] = None):
        self.table = table
        if table:
            message = f"table {table}: {message}"
        super().__init__(message)


class RuleStoreError(MappingError):
    """A rule collection could not be read from the rule store."""


class CatalogFetchError(MappingError):
    """Column metadata for a source table could not be fetched."""


class ResolutionCancelled(MappingError):
    """Raised inside a worker when the run was cancelled by another failure."""


class ResolutionLogicError(MappingError):
    """Rule data is malformed (bad pattern, unknown placeholder, ...)."""
