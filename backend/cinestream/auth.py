"""Authentication, profile and watchlist routes."""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from .dependencies import get_current_caller, get_db_session, get_token_service
from .models import User
from .schemas import (
    AuthResponse,
    ProfileRead,
    ProfileUpdate,
    UserCreate,
    UserLogin,
    WatchlistRead,
)
from .services import credentials, watchlist
from .services.access import CallerIdentity
from .services.tokens import TokenService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _auth_response(user: User, tokens: TokenService) -> AuthResponse:
    token = tokens.issue(user.id)
    return AuthResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        is_admin=user.is_admin,
        access_token=token,
        expires_at=tokens.expires_at(token),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    payload: UserCreate,
    session: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Create an account and sign it in."""

    user = await credentials.register_user(session, payload)
    return _auth_response(user, tokens)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: UserLogin,
    session: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Authenticate a user and return a JWT access token."""

    user = await credentials.verify_credentials(session, payload.identifier, payload.password)
    logger.info("User id=%s logged in", user.id)
    return _auth_response(user, tokens)


@router.get("/profile", response_model=ProfileRead)
async def get_profile(
    caller: CallerIdentity = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session),
) -> ProfileRead:
    return await credentials.get_profile(session, caller.user)


@router.put("/profile", response_model=AuthResponse)
async def update_profile(
    payload: ProfileUpdate,
    caller: CallerIdentity = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Update username, email or password and hand back a fresh token."""

    user = await credentials.update_profile(session, caller.user, payload)
    return _auth_response(user, tokens)


@router.post("/watchlist/{video_id}", response_model=WatchlistRead)
async def add_to_watchlist(
    video_id: int,
    caller: CallerIdentity = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session),
) -> WatchlistRead:
    ids = await watchlist.add_to_watchlist(session, caller.user_id, video_id)
    return WatchlistRead(message="Video added to watchlist", watchlist=ids)


@router.delete("/watchlist/{video_id}", response_model=WatchlistRead)
async def remove_from_watchlist(
    video_id: int,
    caller: CallerIdentity = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session),
) -> WatchlistRead:
    ids = await watchlist.remove_from_watchlist(session, caller.user_id, video_id)
    return WatchlistRead(message="Video removed from watchlist", watchlist=ids)
