"""Tests for the credential store: registration, login and profile changes."""
import asyncio

import pytest

from cinestream.errors import ConflictError, InvalidInputError, NotFoundError, UnauthorizedError
from cinestream.models import User, WatchHistoryEntry
from cinestream.services import credentials
from cinestream.services.watchlist import add_to_watchlist

from conftest import DEFAULT_PASSWORD


@pytest.mark.asyncio
async def test_register_then_verify_with_correct_and_wrong_password(session) -> None:
    user = await credentials.register_user(
        session, {"username": "mira", "email": "mira@example.com", "password": "hunter22"}
    )

    assert user.id is not None
    assert user.is_admin is False
    assert user.password_hash != "hunter22"
    assert user.password_hash.startswith("$pbkdf2-sha256$")

    verified = await credentials.verify_credentials(session, "mira@example.com", "hunter22")
    assert verified.id == user.id

    with pytest.raises(UnauthorizedError):
        await credentials.verify_credentials(session, "mira@example.com", "wrong-pass")


@pytest.mark.asyncio
async def test_username_works_as_login_identifier(session, make_user) -> None:
    user = await make_user("jonas")

    verified = await credentials.verify_credentials(session, "jonas", DEFAULT_PASSWORD)

    assert verified.id == user.id


@pytest.mark.asyncio
async def test_email_lookup_ignores_case(session, make_user) -> None:
    user = await make_user("kate", email="Kate@Example.com")

    assert user.email == "kate@example.com"
    verified = await credentials.verify_credentials(session, "KATE@example.COM", DEFAULT_PASSWORD)
    assert verified.id == user.id


@pytest.mark.asyncio
async def test_unknown_identifier_is_unauthorized(session) -> None:
    with pytest.raises(UnauthorizedError) as excinfo:
        await credentials.verify_credentials(session, "ghost@example.com", "whatever1")

    assert excinfo.value.reason == credentials.INVALID_CREDENTIALS


@pytest.mark.asyncio
async def test_same_email_with_different_username_conflicts(session, make_user) -> None:
    await make_user("first", email="shared@example.com")

    with pytest.raises(ConflictError):
        await make_user("second", email="shared@example.com")


@pytest.mark.asyncio
async def test_same_username_with_different_email_conflicts(session, make_user) -> None:
    await make_user("taken", email="one@example.com")

    with pytest.raises(ConflictError):
        await make_user("taken", email="two@example.com")


@pytest.mark.asyncio
async def test_concurrent_registrations_with_same_email_have_one_winner(session_factory) -> None:
    async def attempt(username: str):
        async with session_factory() as db_session:
            return await credentials.register_user(
                db_session,
                {"username": username, "email": "race@example.com", "password": "secret123"},
            )

    results = await asyncio.gather(
        attempt("racer_one"), attempt("racer_two"), return_exceptions=True
    )

    winners = [r for r in results if isinstance(r, User)]
    losers = [r for r in results if isinstance(r, ConflictError)]
    assert len(winners) == 1
    assert len(losers) == 1


@pytest.mark.asyncio
async def test_invalid_registration_reports_field(session) -> None:
    with pytest.raises(InvalidInputError) as excinfo:
        await credentials.register_user(
            session, {"username": "a@b", "email": "ab@example.com", "password": "secret123"}
        )

    assert excinfo.value.field == "username"


@pytest.mark.asyncio
async def test_update_password_replaces_hash_only(session, make_user) -> None:
    user = await make_user("pat")
    old_hash = user.password_hash

    await credentials.update_password(session, user, "brand-new-pass")

    assert user.password_hash != old_hash
    assert user.username == "pat"
    with pytest.raises(UnauthorizedError):
        await credentials.verify_credentials(session, "pat@example.com", DEFAULT_PASSWORD)
    assert (await credentials.verify_credentials(session, "pat", "brand-new-pass")).id == user.id


@pytest.mark.asyncio
async def test_profile_update_changes_self_service_fields(session, make_user) -> None:
    user = await make_user("olduser")

    updated = await credentials.update_profile(
        session, user, {"username": "newuser", "email": "new@example.com"}
    )

    assert updated.username == "newuser"
    assert updated.email == "new@example.com"
    assert (await credentials.verify_credentials(session, "newuser", DEFAULT_PASSWORD)).id == user.id


@pytest.mark.asyncio
async def test_profile_update_cannot_grant_admin(session, make_user) -> None:
    user = await make_user("sneaky")

    with pytest.raises(InvalidInputError) as excinfo:
        await credentials.update_profile(session, user, {"is_admin": True})

    assert excinfo.value.field == "is_admin"
    await session.refresh(user)
    assert user.is_admin is False


@pytest.mark.asyncio
async def test_profile_update_to_taken_email_conflicts(session, make_user) -> None:
    await make_user("alpha")
    beta = await make_user("beta")

    with pytest.raises(ConflictError):
        await credentials.update_profile(session, beta, {"email": "alpha@example.com"})


@pytest.mark.asyncio
async def test_set_admin_role_grants_and_revokes(session, make_user) -> None:
    user = await make_user("promoted")

    assert (await credentials.set_admin_role(session, user.id, True)).is_admin is True
    assert (await credentials.set_admin_role(session, user.id, False)).is_admin is False

    with pytest.raises(NotFoundError):
        await credentials.set_admin_role(session, 9999, True)


@pytest.mark.asyncio
async def test_profile_resolves_visible_watchlist_and_history(session, make_user, add_video) -> None:
    user = await make_user("watcher")
    shown = await add_video(published=True)
    hidden = await add_video(published=False)
    watched = await add_video(published=True)

    await add_to_watchlist(session, user.id, shown.id)
    await add_to_watchlist(session, user.id, hidden.id)
    await add_to_watchlist(session, user.id, 424242)
    session.add(WatchHistoryEntry(user_id=user.id, video_id=watched.id))
    await session.commit()

    profile = await credentials.get_profile(session, user)

    assert [item.id for item in profile.watchlist] == [shown.id]
    assert [item.id for item in profile.watch_history] == [watched.id]
    assert profile.watchlist[0].title == shown.title
