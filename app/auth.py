"""API key authentication for the scrape trigger."""

from __future__ import annotations

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from app.config import settings

_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def require_api_key(key: str | None = Security(_header)) -> str:
    """Dependency that guards POST /api/scrape.

    With no API_KEY configured the trigger is open, so a local run needs no
    extra setup.
    """
    if not settings.api_key:
        return ""
    if key != settings.api_key:
        raise HTTPException(401, "Invalid or missing API key")
    return key
