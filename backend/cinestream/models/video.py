"""Catalog video model and its genre tags."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAtMixin, utcnow


class Video(CreatedAtMixin, Base):
    """A catalog item. New rows start unpublished."""

    __tablename__ = "videos"

    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 5", name="rating_range"),
        CheckConstraint("views >= 0", name="views_non_negative"),
        CheckConstraint("duration_seconds >= 0", name="duration_non_negative"),
        Index("ix_videos_published_created", "is_published", "created_at"),
        Index("ix_videos_published_views", "is_published", "views"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    director: Mapped[str] = mapped_column(String(200), nullable=False)
    thumbnail_url: Mapped[str] = mapped_column(String, nullable=False)
    content_url: Mapped[str] = mapped_column(String, nullable=False)
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    cast: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    release_year: Mapped[int] = mapped_column(Integer, nullable=False)
    rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    genre_tags: Mapped[list[VideoGenre]] = relationship(
        back_populates="video",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="VideoGenre.id",
    )

    @property
    def genres(self) -> list[str]:
        return [tag.genre for tag in self.genre_tags]

    @property
    def formatted_duration(self) -> str:
        hours, remainder = divmod(self.duration_seconds, 3600)
        minutes, seconds = divmod(remainder, 60)
        prefix = f"{hours}h " if hours > 0 else ""
        return f"{prefix}{minutes}m {seconds}s"


class VideoGenre(Base):
    """Exact-match genre tag attached to a video."""

    __tablename__ = "video_genres"

    __table_args__ = (
        UniqueConstraint("video_id", "genre", name="uq_video_genres_video_genre"),
        Index("ix_video_genres_genre", "genre"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    video_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False
    )
    genre: Mapped[str] = mapped_column(String(50), nullable=False)

    video: Mapped[Video] = relationship(back_populates="genre_tags")
