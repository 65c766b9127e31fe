"""Atomic view counting for catalog videos."""
from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Video
from ..models.base import is_row_id


async def increment_views(session: AsyncSession, video_id: int) -> bool:
    """Add one view to `video_id` and commit.

    The increment is a single ``UPDATE ... SET views = views + 1`` so the
    database applies it atomically: concurrent viewers never lose a count, and
    no other column of the row is written. Returns False if no row matched.
    """

    if not is_row_id(video_id):
        return False
    result = await session.execute(
        update(Video)
        .where(Video.id == video_id)
        .values(views=Video.views + 1)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    return result.rowcount == 1
