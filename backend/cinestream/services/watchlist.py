"""Per-user watchlist kept as a set of video ids.

Membership lives in `watchlist_entries`, one row per (user, video) pair under
a unique constraint, so every add or remove is a single-row insert or delete.
Concurrent adds of different videos never overwrite each other and two adds of
the same video cannot both land.

Adding a video twice is an error while removing an absent video is not. The
asymmetry is intentional: a repeated add usually means a stale client.
"""
from __future__ import annotations

import logging
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConflictError, InvalidInputError
from ..models import WatchlistEntry
from ..models.base import is_row_id

logger = logging.getLogger(__name__)

ALREADY_IN_WATCHLIST = "Video already in watchlist"


async def get_watchlist(session: AsyncSession, user_id: int) -> List[int]:
    """Video ids on the user's watchlist, oldest addition first."""

    result = await session.execute(
        select(WatchlistEntry.video_id)
        .where(WatchlistEntry.user_id == user_id)
        .order_by(WatchlistEntry.added_at, WatchlistEntry.id)
    )
    return list(result.scalars().all())


async def add_to_watchlist(session: AsyncSession, user_id: int, video_id: int) -> List[int]:
    """Insert `video_id`; ConflictError if it is already present."""

    if not is_row_id(video_id):
        raise InvalidInputError("video id out of range", field="video_id")
    existing = await session.execute(
        select(WatchlistEntry.id).where(
            WatchlistEntry.user_id == user_id,
            WatchlistEntry.video_id == video_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(ALREADY_IN_WATCHLIST)

    session.add(WatchlistEntry(user_id=user_id, video_id=video_id))
    try:
        await session.commit()
    except IntegrityError as exc:
        # lost a race with a concurrent add of the same video
        await session.rollback()
        raise ConflictError(ALREADY_IN_WATCHLIST) from exc

    logger.info("User id=%s added video id=%s to watchlist", user_id, video_id)
    return await get_watchlist(session, user_id)


async def remove_from_watchlist(session: AsyncSession, user_id: int, video_id: int) -> List[int]:
    """Delete `video_id` if present. Removing an absent id succeeds."""

    if not is_row_id(video_id):
        return await get_watchlist(session, user_id)
    result = await session.execute(
        delete(WatchlistEntry).where(
            WatchlistEntry.user_id == user_id,
            WatchlistEntry.video_id == video_id,
        )
    )
    await session.commit()
    if result.rowcount:
        logger.info("User id=%s removed video id=%s from watchlist", user_id, video_id)
    return await get_watchlist(session, user_id)
