"""Bearer token authentication for API endpoints."""

import os
import secrets

from fastapi import Header, HTTPException


def _bearer_value(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, value = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return value.strip() or None


async def require_bearer_token(authorization: str | None = Header(default=None)) -> None:
    """
    Dependency: require Authorization: Bearer <token> matching API_AUTH_TOKEN.
    503 when the server has no token configured, 401 on a missing or wrong token.
    """
    token = os.environ.get("API_AUTH_TOKEN")
    if not token:
        raise HTTPException(
            status_code=503,
            detail="Server configuration error: API_AUTH_TOKEN not set",
        )
    value = _bearer_value(authorization)
    if value is None or not secrets.compare_digest(value, token):
        raise HTTPException(status_code=401, detail="Unauthorized")
