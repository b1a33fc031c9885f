"""
API security helpers.
"""
import secrets
from typing import Optional
from fastapi import Header, HTTPException, status

from app.core.config import settings


async def require_api_key(x_api_key: Optional[str] = Header(default=None, alias="X-API-Key")):
    """Guard the settings endpoints with a shared token when auth is enabled."""
    if not settings.API_AUTH_ENABLED:
        return

    if not settings.API_AUTH_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"outcome": "auth.misconfigured", "message": "API_AUTH_TOKEN is not configured"}
        )

    if not x_api_key or not secrets.compare_digest(x_api_key, settings.API_AUTH_TOKEN):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"outcome": "auth.invalid_key", "message": "Invalid or missing API key"}
        )
