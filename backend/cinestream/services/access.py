"""Caller identity resolution and role checks.

A request starts anonymous. If it carries a bearer token the token is
verified, then the user it names is loaded; only then does the request carry
an identity and its admin flag.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ForbiddenError, InvalidTokenError, UnauthorizedError
from ..models import User
from .tokens import TokenService

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "Not authenticated"
INVALID_TOKEN = "Could not validate credentials"


@dataclass(frozen=True)
class CallerIdentity:
    user: User

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return bool(self.user.is_admin)


async def resolve_caller(
    session: AsyncSession, tokens: TokenService, token: Optional[str]
) -> Optional[CallerIdentity]:
    """Return the caller's identity, or None for an anonymous request.

    A token that is present but invalid, expired, or names a deleted user is
    an UnauthorizedError; it never degrades to anonymous access.
    """

    if not token:
        logger.debug("No bearer token presented")
        return None

    try:
        user_id = tokens.verify(token)
    except InvalidTokenError as exc:
        logger.debug("Bearer token rejected: %s", exc.reason)
        raise UnauthorizedError(INVALID_TOKEN) from exc

    user = await session.get(User, user_id)
    if user is None:
        logger.debug("Bearer token names missing user id=%s", user_id)
        raise UnauthorizedError(INVALID_TOKEN)
    return CallerIdentity(user=user)


def require_authenticated(caller: Optional[CallerIdentity]) -> CallerIdentity:
    if caller is None:
        raise UnauthorizedError(NOT_AUTHENTICATED)
    return caller


def require_admin(caller: Optional[CallerIdentity]) -> CallerIdentity:
    """Ensure the caller is signed in and holds the admin role."""

    caller = require_authenticated(caller)
    if not caller.is_admin:
        raise ForbiddenError("Administrator role required")
    return caller
