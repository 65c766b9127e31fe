"""Tests for caller identity resolution and role gating."""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import delete

from cinestream.errors import ForbiddenError, UnauthorizedError
from cinestream.models import User
from cinestream.services.access import require_admin, require_authenticated, resolve_caller
from cinestream.services.tokens import TokenService

from conftest import TEST_SECRET


@pytest.mark.asyncio
async def test_no_token_is_anonymous(session, tokens) -> None:
    assert await resolve_caller(session, tokens, None) is None
    assert await resolve_caller(session, tokens, "") is None


@pytest.mark.asyncio
async def test_valid_token_resolves_user_and_role(session, tokens, make_user) -> None:
    admin = await make_user("boss", is_admin=True)

    caller = await resolve_caller(session, tokens, tokens.issue(admin.id))

    assert caller is not None
    assert caller.user_id == admin.id
    assert caller.is_admin is True


@pytest.mark.asyncio
async def test_invalid_token_is_unauthorized_not_anonymous(session, tokens) -> None:
    with pytest.raises(UnauthorizedError):
        await resolve_caller(session, tokens, "garbage.token.value")


@pytest.mark.asyncio
async def test_expired_token_is_unauthorized(session, tokens, make_user) -> None:
    user = await make_user("late")
    past = datetime.now(timezone.utc) - timedelta(days=60)
    stale = TokenService(TEST_SECRET, clock=lambda: past).issue(user.id)

    with pytest.raises(UnauthorizedError):
        await resolve_caller(session, tokens, stale)


@pytest.mark.asyncio
async def test_token_for_deleted_user_is_unauthorized(session, tokens, make_user) -> None:
    user = await make_user("gone")
    token = tokens.issue(user.id)
    await session.execute(delete(User).where(User.id == user.id))
    await session.commit()
    session.expunge_all()

    with pytest.raises(UnauthorizedError):
        await resolve_caller(session, tokens, token)


@pytest.mark.asyncio
async def test_role_checks(session, tokens, make_user) -> None:
    viewer = await make_user("viewer")
    caller = await resolve_caller(session, tokens, tokens.issue(viewer.id))

    assert require_authenticated(caller) is caller
    with pytest.raises(ForbiddenError):
        require_admin(caller)
    with pytest.raises(UnauthorizedError):
        require_authenticated(None)
    with pytest.raises(UnauthorizedError):
        require_admin(None)
