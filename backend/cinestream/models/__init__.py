"""SQLAlchemy models exposed by the backend."""
from .base import Base
from .user import User, WatchHistoryEntry, WatchlistEntry
from .video import Video, VideoGenre

__all__ = ["Base", "User", "Video", "VideoGenre", "WatchHistoryEntry", "WatchlistEntry"]
