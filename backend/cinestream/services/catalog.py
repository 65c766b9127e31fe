"""Catalog queries and admin mutations for videos.

Every read path goes through `visibility_conditions`: callers without the
admin role only ever see published videos, and that condition is ANDed with
whatever filters the caller supplied. Mutations assume the caller has already
been authorised as an admin by the access guard.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from sqlalchemy import ColumnElement, delete, func, insert, not_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import casefold
from ..errors import InvalidInputError, NotFoundError
from ..models import Video, VideoGenre
from ..models.base import MAX_ROW_ID, is_row_id, utcnow
from ..schemas import VideoCreate, VideoUpdate, parse_payload
from .views import increment_views

logger = logging.getLogger(__name__)

LIST_PAGE_SIZE = 12
FEATURED_LIMIT = 6
TRENDING_LIMIT = 10
GENRE_LIMIT = 10

VIDEO_NOT_FOUND = "Video not found"
LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class CatalogQuery:
    """Caller supplied filters for the paginated catalog listing."""

    keyword: Optional[str] = None
    genre: Optional[str] = None
    page: int = 1


@dataclass
class CatalogPage:
    videos: List[Video]
    page: int
    pages: int
    total: int


def _escape_like(term: str) -> str:
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def visibility_conditions(is_admin: bool) -> List[ColumnElement[bool]]:
    """Conditions limiting a query to what the caller's role may see."""

    if is_admin:
        return []
    return [Video.is_published.is_(True)]


def build_conditions(query: CatalogQuery, is_admin: bool) -> List[ColumnElement[bool]]:
    """Translate a CatalogQuery into SQL conditions, visibility first.

    The keyword is matched with full Unicode case folding on both sides, so
    "ÉTÉ" finds "été". Genre tags match exactly.
    """

    conditions = visibility_conditions(is_admin)

    keyword = (query.keyword or "").strip()
    if keyword:
        pattern = f"%{_escape_like(keyword.casefold())}%"
        conditions.append(
            or_(
                casefold(Video.title).like(pattern, escape=LIKE_ESCAPE),
                casefold(Video.description).like(pattern, escape=LIKE_ESCAPE),
            )
        )

    if query.genre:
        conditions.append(Video.genre_tags.any(VideoGenre.genre == query.genre))

    return conditions


async def list_catalog(session: AsyncSession, query: CatalogQuery, is_admin: bool) -> CatalogPage:
    """One page of matching videos, newest first, with total and page count."""

    if query.page < 1:
        raise InvalidInputError("page must be a positive integer", field="page")

    conditions = build_conditions(query, is_admin)

    total = (
        await session.execute(select(func.count()).select_from(Video).where(*conditions))
    ).scalar_one()

    offset = (query.page - 1) * LIST_PAGE_SIZE
    videos: List[Video] = []
    # pages past any storable offset are simply empty
    if offset <= MAX_ROW_ID:
        result = await session.execute(
            select(Video)
            .where(*conditions)
            .order_by(Video.created_at.desc(), Video.id.desc())
            .limit(LIST_PAGE_SIZE)
            .offset(offset)
        )
        videos = list(result.scalars().all())
    return CatalogPage(
        videos=videos,
        page=query.page,
        pages=math.ceil(total / LIST_PAGE_SIZE),
        total=total,
    )


async def featured_videos(session: AsyncSession) -> List[Video]:
    result = await session.execute(
        select(Video)
        .where(Video.is_featured.is_(True), *visibility_conditions(False))
        .order_by(Video.created_at.desc(), Video.id.desc())
        .limit(FEATURED_LIMIT)
    )
    return list(result.scalars().all())


async def trending_videos(session: AsyncSession) -> List[Video]:
    """Most viewed published videos."""

    result = await session.execute(
        select(Video)
        .where(*visibility_conditions(False))
        .order_by(Video.views.desc(), Video.created_at.desc(), Video.id.desc())
        .limit(TRENDING_LIMIT)
    )
    return list(result.scalars().all())


async def videos_by_genre(session: AsyncSession, genre: str) -> List[Video]:
    conditions = build_conditions(CatalogQuery(genre=genre), is_admin=False)
    result = await session.execute(
        select(Video)
        .where(*conditions)
        .order_by(Video.created_at.desc(), Video.id.desc())
        .limit(GENRE_LIMIT)
    )
    return list(result.scalars().all())


async def _load_video(session: AsyncSession, video_id: int) -> Optional[Video]:
    if not is_row_id(video_id):
        return None
    # populate_existing so counters changed by UPDATE statements are re-read
    result = await session.execute(
        select(Video)
        .where(Video.id == video_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _require_video(session: AsyncSession, video_id: int) -> Video:
    video = await _load_video(session, video_id)
    if video is None:
        raise NotFoundError(VIDEO_NOT_FOUND)
    return video


async def get_video(session: AsyncSession, video_id: int, is_admin: bool) -> Video:
    """Fetch one video the caller may see and record a view on it.

    Hidden videos are reported as missing so their existence does not leak.
    """

    video = await _load_video(session, video_id)
    if video is None or not (is_admin or video.is_published):
        raise NotFoundError(VIDEO_NOT_FOUND)

    if not await increment_views(session, video_id):
        # deleted between the read and the increment
        raise NotFoundError(VIDEO_NOT_FOUND)
    return await _require_video(session, video_id)


async def create_video(
    session: AsyncSession, payload: Union[VideoCreate, Mapping[str, Any]]
) -> Video:
    """Insert a new video. It always starts unpublished and unfeatured."""

    data = parse_payload(VideoCreate, payload)
    video = Video(
        **data.model_dump(exclude={"genres"}),
        views=0,
        is_published=False,
        is_featured=False,
        genre_tags=[VideoGenre(genre=genre) for genre in data.genres],
    )
    session.add(video)
    await session.commit()

    logger.info("Created video id=%s title=%r", video.id, video.title)
    return await _require_video(session, video.id)


async def update_video(
    session: AsyncSession,
    video_id: int,
    payload: Union[VideoUpdate, Mapping[str, Any]],
) -> Video:
    """Merge the supplied editable fields into an existing video.

    Only columns named in the payload are written; `views` is never part of
    the statement, so concurrent view counts are preserved. Supplying
    `genres` replaces the whole tag set.
    """

    changes = parse_payload(VideoUpdate, payload).model_dump(exclude_unset=True)
    genres = changes.pop("genres", None)

    if not is_row_id(video_id):
        raise NotFoundError(VIDEO_NOT_FOUND)
    exists = await session.execute(select(Video.id).where(Video.id == video_id))
    if exists.scalar_one_or_none() is None:
        raise NotFoundError(VIDEO_NOT_FOUND)

    if changes or genres is not None:
        await session.execute(
            update(Video)
            .where(Video.id == video_id)
            .values(**changes, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
    if genres is not None:
        await session.execute(
            delete(VideoGenre)
            .where(VideoGenre.video_id == video_id)
            .execution_options(synchronize_session=False)
        )
        await session.execute(
            insert(VideoGenre).values([{"video_id": video_id, "genre": genre} for genre in genres])
        )
    await session.commit()

    if changes or genres is not None:
        fields = sorted(changes) + (["genres"] if genres is not None else [])
        logger.info("Updated video id=%s fields=%s", video_id, fields)
    return await _require_video(session, video_id)


async def delete_video(session: AsyncSession, video_id: int) -> None:
    """Remove a video and its genre tags. Watchlist entries are left as is."""

    if not is_row_id(video_id):
        raise NotFoundError(VIDEO_NOT_FOUND)
    result = await session.execute(
        delete(Video)
        .where(Video.id == video_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await session.rollback()
        raise NotFoundError(VIDEO_NOT_FOUND)
    await session.commit()
    logger.info("Deleted video id=%s", video_id)


async def _toggle(session: AsyncSession, video_id: int, column: Any) -> Video:
    if not is_row_id(video_id):
        raise NotFoundError(VIDEO_NOT_FOUND)
    # flipped inside the UPDATE, never read then written back
    result = await session.execute(
        update(Video)
        .where(Video.id == video_id)
        .values({column: not_(column), Video.updated_at: utcnow()})
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await session.rollback()
        raise NotFoundError(VIDEO_NOT_FOUND)
    await session.commit()
    return await _require_video(session, video_id)


async def toggle_publish(session: AsyncSession, video_id: int) -> Video:
    video = await _toggle(session, video_id, Video.is_published)
    logger.info("Video id=%s is_published=%s", video_id, video.is_published)
    return video


async def toggle_feature(session: AsyncSession, video_id: int) -> Video:
    video = await _toggle(session, video_id, Video.is_featured)
    logger.info("Video id=%s is_featured=%s", video_id, video.is_featured)
    return video
