"""API routes: resolve mappings for a source schema."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from ..errors import CatalogFetchError, MappingError, ResolutionLogicError, RuleStoreError
from .auth import require_bearer_token
from .db import ChangeFactory, get_change_factory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["mappings"])


@router.get("/mappings/{schema}")
def get_mappings(
    schema: str,
    _: None = Depends(require_bearer_token),
    tables: list[str] | None = Query(None, description="Tables to resolve; defaults to every table in the schema."),
    target_schema: str | None = Query(None, description="Target schema; defaults to the upper-cased source schema."),
    factory: ChangeFactory = Depends(get_change_factory),
):
    """Return table name, datatype and default value mappings for the schema."""
    schema_name = schema.strip()
    target = (target_schema or "").strip() or schema_name.upper()
    try:
        change = factory(schema_name, target, tables)
        mappings = change.resolve_all()
    except (RuleStoreError, CatalogFetchError) as e:
        raise HTTPException(
            status_code=502,
            detail={"detail": str(e), "schema": schema_name, "table": e.table},
        ) from e
    except ResolutionLogicError as e:
        raise HTTPException(
            status_code=422,
            detail={"detail": str(e), "schema": schema_name, "table": e.table},
        ) from e
    except MappingError as e:
        logger.exception(f"Mapping resolution failed for schema {schema_name}")
        raise HTTPException(status_code=500, detail={"detail": "Mapping error", "schema": schema_name}) from e
    except Exception as e:
        logger.exception(f"Could not set up mapping resolution for schema {schema_name}")
        raise HTTPException(status_code=500, detail={"detail": "Database error", "schema": schema_name}) from e
    return {"schema": schema_name, "target_schema": target, **mappings.to_dict()}
