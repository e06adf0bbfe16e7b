"""Shared-secret check for endpoints that trigger council scrapes."""

from __future__ import annotations

import secrets

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from binday.config import settings

_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def require_api_key(key: str | None = Security(_header)) -> str:
    # No key configured means open access (local development)
    if not settings.api_key:
        return ""
    if not key or not secrets.compare_digest(key, settings.api_key):
        raise HTTPException(401, "Invalid or missing API key")
    return key
