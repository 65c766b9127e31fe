"""User identity records and one-way password verification."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Union

from fastapi.concurrency import run_in_threadpool
from passlib.context import CryptContext
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConflictError, NotFoundError, UnauthorizedError
from ..models import User, Video, WatchHistoryEntry
from ..schemas import ProfileRead, ProfileUpdate, UserCreate, VideoSummary, parse_payload
from .watchlist import get_watchlist

logger = logging.getLogger(__name__)

# PBKDF2-SHA256 keeps us free of native bcrypt backends
password_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
)

INVALID_CREDENTIALS = "Invalid email or password"
USER_EXISTS = "User already exists"


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return password_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against the stored hash."""
    return password_context.verify(password, password_hash)


def _normalise_email(email: str) -> str:
    return email.strip().lower()


async def register_user(
    session: AsyncSession, payload: Union[UserCreate, Mapping[str, Any]]
) -> User:
    """Create a user, failing with ConflictError on a taken username or email.

    The pre-check gives a clean error in the common case; the unique
    constraints settle concurrent registrations, where the loser's commit
    raises IntegrityError.
    """

    data = parse_payload(UserCreate, payload)
    email = _normalise_email(data.email)

    existing = await session.execute(
        select(User.id).where(or_(User.username == data.username, User.email == email)).limit(1)
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(USER_EXISTS)

    user = User(
        username=data.username,
        email=email,
        password_hash=await run_in_threadpool(hash_password, data.password),
        is_admin=False,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError(USER_EXISTS) from exc
    await session.refresh(user)

    logger.info("Registered user id=%s username=%s", user.id, user.username)
    return user


async def verify_credentials(session: AsyncSession, identifier: str, password: str) -> User:
    """Return the user matching `identifier` and `password`.

    Identifiers containing '@' are treated as e-mail addresses, anything else
    as a username. Unknown identifiers still pay for one hash so response
    timing does not reveal which accounts exist.
    """

    identifier = identifier.strip()
    if "@" in identifier:
        condition = User.email == _normalise_email(identifier)
    else:
        condition = User.username == identifier

    result = await session.execute(select(User).where(condition))
    user = result.scalar_one_or_none()
    if user is None:
        await run_in_threadpool(password_context.dummy_verify)
        logger.warning("Login failed: unknown identifier")
        raise UnauthorizedError(INVALID_CREDENTIALS)

    if not await run_in_threadpool(verify_password, password, user.password_hash):
        logger.warning("Login failed for user id=%s", user.id)
        raise UnauthorizedError(INVALID_CREDENTIALS)

    return user


async def update_password(session: AsyncSession, user: User, new_password: str) -> User:
    """Replace the stored hash; no other column is written."""

    data = parse_payload(ProfileUpdate, {"password": new_password})
    user.password_hash = await run_in_threadpool(hash_password, data.password)
    await session.commit()
    logger.info("Password changed for user id=%s", user.id)
    return user


async def update_profile(
    session: AsyncSession, user: User, payload: Union[ProfileUpdate, Mapping[str, Any]]
) -> User:
    """Apply self-service changes (username, email, password) to `user`."""

    changes = parse_payload(ProfileUpdate, payload).model_dump(exclude_none=True)
    if "email" in changes:
        changes["email"] = _normalise_email(changes["email"])

    clashes = []
    if changes.get("username", user.username) != user.username:
        clashes.append(User.username == changes["username"])
    if changes.get("email", user.email) != user.email:
        clashes.append(User.email == changes["email"])
    if clashes:
        taken = await session.execute(
            select(User.id).where(or_(*clashes), User.id != user.id).limit(1)
        )
        if taken.scalar_one_or_none() is not None:
            raise ConflictError("Username or email already in use")

    if "username" in changes:
        user.username = changes["username"]
    if "email" in changes:
        user.email = changes["email"]
    if "password" in changes:
        user.password_hash = await run_in_threadpool(hash_password, changes["password"])

    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Username or email already in use") from exc
    await session.refresh(user)

    logger.info("Profile updated for user id=%s fields=%s", user.id, sorted(changes))
    return user


async def get_profile(session: AsyncSession, user: User) -> ProfileRead:
    """User fields plus watchlist and history resolved to video summaries."""

    watchlist_ids = await get_watchlist(session, user.id)
    history = await session.execute(
        select(WatchHistoryEntry.video_id)
        .where(WatchHistoryEntry.user_id == user.id)
        .order_by(WatchHistoryEntry.watched_at.desc(), WatchHistoryEntry.id.desc())
    )
    history_ids = list(history.scalars().all())

    wanted = set(watchlist_ids) | set(history_ids)
    summaries = {}
    if wanted:
        query = select(Video.id, Video.title, Video.thumbnail_url).where(Video.id.in_(wanted))
        if not user.is_admin:
            query = query.where(Video.is_published.is_(True))
        rows = await session.execute(query)
        summaries = {row.id: VideoSummary.model_validate(row) for row in rows}

    profile = ProfileRead.model_validate(user)
    # Dangling or hidden ids are dropped rather than reported
    profile.watchlist = [summaries[i] for i in watchlist_ids if i in summaries]
    profile.watch_history = [summaries[i] for i in history_ids if i in summaries]
    return profile


async def set_admin_role(session: AsyncSession, user_id: int, is_admin: bool) -> User:
    """Administrative capability: grant or revoke the admin role."""

    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    user.is_admin = is_admin
    await session.commit()
    logger.info("Admin role %s for user id=%s", "granted" if is_admin else "revoked", user_id)
    return user


async def get_user_by_email(session: AsyncSession, email: str) -> User:
    result = await session.execute(select(User).where(User.email == _normalise_email(email)))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user
