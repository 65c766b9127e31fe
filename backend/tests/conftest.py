"""Test fixtures for the backend."""
import os
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.pool import NullPool

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")

from cinestream import models  # noqa: E402
from cinestream.database import build_engine  # noqa: E402
from cinestream.dependencies import get_db_session, get_token_service  # noqa: E402
from cinestream.main import app  # noqa: E402
from cinestream.models import User, Video, VideoGenre  # noqa: E402
from cinestream.services.credentials import register_user, set_admin_role  # noqa: E402
from cinestream.services.tokens import TokenService  # noqa: E402

TEST_SECRET = "test-secret"
DEFAULT_PASSWORD = "secret123"


def video_payload(**overrides: Any) -> Dict[str, Any]:
    """A valid create payload; keyword arguments replace fields."""

    payload = {
        "title": "The Long Night",
        "description": "A lighthouse keeper waits out a storm.",
        "director": "Ada Moreau",
        "thumbnail_url": "https://cdn.example.com/thumbs/long-night.jpg",
        "content_url": "https://cdn.example.com/videos/long-night.m3u8",
        "duration_seconds": 5430,
        "genres": ["Drama", "Thriller"],
        "cast": ["Lena Ortiz", "Tom Hale"],
        "release_year": 2021,
        "rating": 4.2,
    }
    payload.update(overrides)
    return payload


@pytest_asyncio.fixture
async def engine(tmp_path):
    """A fresh SQLite database file per test."""

    test_engine = build_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test_backend.db'}", poolclass=NullPool
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as db_session:
        yield db_session


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(TEST_SECRET)


@pytest_asyncio.fixture
async def client(session_factory, tokens):
    """Provide an HTTP client wired to the per-test database."""

    async def override_session():
        async with session_factory() as db_session:
            yield db_session

    app.dependency_overrides[get_db_session] = override_session
    app.dependency_overrides[get_token_service] = lambda: tokens
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    """Register a user through the credential store, optionally as admin."""

    async def _make_user(
        username: str = "viewer", email: Optional[str] = None, is_admin: bool = False
    ) -> User:
        user = await register_user(
            session,
            {
                "username": username,
                "email": email or f"{username}@example.com",
                "password": DEFAULT_PASSWORD,
            },
        )
        if is_admin:
            user = await set_admin_role(session, user.id, True)
        return user

    return _make_user


@pytest.fixture
def add_video(session):
    """Insert a video row directly, with strictly increasing created_at."""

    counter = {"n": 0}
    base = datetime(2024, 1, 1)

    async def _add_video(
        published: bool = True,
        genres=("Drama",),
        **overrides: Any,
    ) -> Video:
        counter["n"] += 1
        fields = video_payload(title=f"Video {counter['n']}")
        fields.pop("genres")
        fields.update(overrides)
        video = Video(
            **fields,
            is_published=published,
            created_at=base + timedelta(minutes=counter["n"]),
            genre_tags=[VideoGenre(genre=genre) for genre in genres],
        )
        session.add(video)
        await session.commit()
        return video

    return _add_video


@pytest.fixture
def bearer(tokens):
    def _bearer(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {tokens.issue(user.id)}"}

    return _bearer
