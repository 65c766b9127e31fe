"""Reusable FastAPI dependencies."""
from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import get_session
from .services.access import (
    CallerIdentity,
    require_admin,
    require_authenticated,
    resolve_caller,
)
from .services.tokens import TokenService

# Use simple Bearer auth instead of OAuth2 password flow
bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields an AsyncSession."""
    async for session in get_session():
        yield session


@lru_cache
def get_token_service() -> TokenService:
    """Process-wide token service built once from settings."""

    settings = get_settings()
    return TokenService(
        settings.secret_key,
        lifetime=timedelta(days=settings.access_token_expires_days),
    )


async def get_optional_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> Optional[CallerIdentity]:
    """Identity for endpoints that also serve anonymous callers."""

    token = None
    if credentials is not None and credentials.scheme.lower() == "bearer":
        token = credentials.credentials
    return await resolve_caller(session, tokens, token)


async def get_current_caller(
    caller: Optional[CallerIdentity] = Depends(get_optional_caller),
) -> CallerIdentity:
    """Return the authenticated caller taken from the Authorization header."""
    return require_authenticated(caller)


async def get_admin_caller(
    caller: Optional[CallerIdentity] = Depends(get_optional_caller),
) -> CallerIdentity:
    return require_admin(caller)


def is_admin(caller: Optional[CallerIdentity]) -> bool:
    return caller is not None and caller.is_admin
