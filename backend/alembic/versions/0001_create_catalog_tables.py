"""create users, videos, genres, watchlist and history tables"""
from alembic import op
import sqlalchemy as sa

revision = "0001_create_catalog_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "videos",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("director", sa.String(length=200), nullable=False),
        sa.Column("thumbnail_url", sa.String(), nullable=False),
        sa.Column("content_url", sa.String(), nullable=False),
        sa.Column("duration_seconds", sa.Integer(), nullable=False),
        sa.Column("cast", sa.JSON(), nullable=False),
        sa.Column("release_year", sa.Integer(), nullable=False),
        sa.Column("rating", sa.Float(), nullable=False, server_default="0"),
        sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_videos"),
        sa.CheckConstraint("rating >= 0 AND rating <= 5", name="ck_videos_rating_range"),
        sa.CheckConstraint("views >= 0", name="ck_videos_views_non_negative"),
        sa.CheckConstraint("duration_seconds >= 0", name="ck_videos_duration_non_negative"),
    )
    op.create_index("ix_videos_created_at", "videos", ["created_at"])
    op.create_index("ix_videos_published_created", "videos", ["is_published", "created_at"])
    op.create_index("ix_videos_published_views", "videos", ["is_published", "views"])

    op.create_table(
        "video_genres",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("video_id", sa.Integer(), nullable=False),
        sa.Column("genre", sa.String(length=50), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_video_genres"),
        sa.ForeignKeyConstraint(
            ["video_id"], ["videos.id"],
            name="fk_video_genres_video_id_videos",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("video_id", "genre", name="uq_video_genres_video_genre"),
    )
    op.create_index("ix_video_genres_genre", "video_genres", ["genre"])

    op.create_table(
        "watchlist_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("video_id", sa.Integer(), nullable=False),
        sa.Column("added_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_watchlist_entries"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"],
            name="fk_watchlist_entries_user_id_users",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("user_id", "video_id", name="uq_watchlist_entries_user_video"),
    )
    op.create_index("ix_watchlist_entries_user_added", "watchlist_entries", ["user_id", "added_at"])

    op.create_table(
        "watch_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("video_id", sa.Integer(), nullable=False),
        sa.Column("watched_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_watch_history"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"],
            name="fk_watch_history_user_id_users",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("user_id", "video_id", name="uq_watch_history_user_video"),
    )
    op.create_index("ix_watch_history_user_id", "watch_history", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_watch_history_user_id", table_name="watch_history")
    op.drop_table("watch_history")
    op.drop_index("ix_watchlist_entries_user_added", table_name="watchlist_entries")
    op.drop_table("watchlist_entries")
    op.drop_index("ix_video_genres_genre", table_name="video_genres")
    op.drop_table("video_genres")
    op.drop_index("ix_videos_published_views", table_name="videos")
    op.drop_index("ix_videos_published_created", table_name="videos")
    op.drop_index("ix_videos_created_at", table_name="videos")
    op.drop_table("videos")
    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_table("users")
