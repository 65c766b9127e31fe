"""Catalog endpoints for the FastAPI backend."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..dependencies import get_admin_caller, get_db_session, get_optional_caller, is_admin
from ..models import Video
from ..schemas import VideoCreate, VideoPage, VideoRead, VideoUpdate
from ..services import catalog
from ..services.access import CallerIdentity

router = APIRouter(prefix="/api/videos", tags=["videos"])


@router.get("", response_model=VideoPage)
async def list_videos(
    keyword: Optional[str] = None,
    genre: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    caller: Optional[CallerIdentity] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_db_session),
) -> VideoPage:
    """Paginated catalog; unpublished videos are included for admins only."""

    result = await catalog.list_catalog(
        session,
        catalog.CatalogQuery(keyword=keyword, genre=genre, page=page),
        is_admin=is_admin(caller),
    )
    return VideoPage(
        videos=[VideoRead.model_validate(video) for video in result.videos],
        page=result.page,
        pages=result.pages,
        total=result.total,
    )


@router.get("/featured", response_model=List[VideoRead])
async def featured_videos(session: AsyncSession = Depends(get_db_session)) -> List[Video]:
    return await catalog.featured_videos(session)


@router.get("/trending", response_model=List[VideoRead])
async def trending_videos(session: AsyncSession = Depends(get_db_session)) -> List[Video]:
    return await catalog.trending_videos(session)


@router.get("/genre/{genre}", response_model=List[VideoRead])
async def videos_by_genre(
    genre: str, session: AsyncSession = Depends(get_db_session)
) -> List[Video]:
    return await catalog.videos_by_genre(session, genre)


@router.get("/{video_id}", response_model=VideoRead)
async def get_video(
    video_id: int,
    caller: Optional[CallerIdentity] = Depends(get_optional_caller),
    session: AsyncSession = Depends(get_db_session),
) -> Video:
    """Return a single video and count the view."""

    return await catalog.get_video(session, video_id, is_admin=is_admin(caller))


@router.post("", response_model=VideoRead, status_code=status.HTTP_201_CREATED)
async def create_video(
    payload: VideoCreate,
    _: CallerIdentity = Depends(get_admin_caller),
    session: AsyncSession = Depends(get_db_session),
) -> Video:
    """Create a video (admin only). New videos are unpublished."""

    return await catalog.create_video(session, payload)


@router.put("/{video_id}", response_model=VideoRead)
async def update_video(
    video_id: int,
    payload: VideoUpdate,
    _: CallerIdentity = Depends(get_admin_caller),
    session: AsyncSession = Depends(get_db_session),
) -> Video:
    return await catalog.update_video(session, video_id, payload)


@router.delete("/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_video(
    video_id: int,
    _: CallerIdentity = Depends(get_admin_caller),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await catalog.delete_video(session, video_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{video_id}/publish", response_model=VideoRead)
async def toggle_publish(
    video_id: int,
    _: CallerIdentity = Depends(get_admin_caller),
    session: AsyncSession = Depends(get_db_session),
) -> Video:
    """Flip the publish flag (admin only)."""

    return await catalog.toggle_publish(session, video_id)


@router.patch("/{video_id}/feature", response_model=VideoRead)
async def toggle_feature(
    video_id: int,
    _: CallerIdentity = Depends(get_admin_caller),
    session: AsyncSession = Depends(get_db_session),
) -> Video:
    """Flip the featured flag (admin only)."""

    return await catalog.toggle_feature(session, video_id)
