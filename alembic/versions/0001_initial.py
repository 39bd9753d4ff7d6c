"""Create initial tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

content_kind = sa.Enum("VIDEO", "COMMENT", "TWEET", name="contentkind")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime, nullable=False, index=True),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    ]


def _reference(table: str = "users", column: str = "owner_id"):
    return sa.Column(
        column,
        sa.Integer,
        sa.ForeignKey(f"{table}.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("username", sa.String(50), nullable=False, unique=True, index=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("fullname", sa.String(100), nullable=False),
        sa.Column("avatar", sa.String(512), nullable=False),
        sa.Column("cover_image", sa.String(512), nullable=False),
        sa.Column("hashed_password", sa.String, nullable=False),
        sa.Column("refresh_token", sa.String, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )

    op.create_table(
        "videos",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("video_file", sa.String(512), nullable=False),
        sa.Column("thumbnail", sa.String(512), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.String(5000), nullable=False),
        sa.Column("duration", sa.Float, nullable=False),
        sa.Column("views", sa.Integer, nullable=False),
        sa.Column("is_published", sa.Boolean, nullable=False),
        _reference(),
        *_timestamps(),
    )

    op.create_table(
        "tweets",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("content", sa.String(1000), nullable=False),
        _reference(),
        *_timestamps(),
    )

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("content", sa.String(1000), nullable=False),
        _reference("videos", "video_id"),
        _reference(),
        *_timestamps(),
    )

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Integer, primary_key=True),
        _reference(column="subscriber_id"),
        _reference(column="channel_id"),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.UniqueConstraint("subscriber_id", "channel_id", name="uq_subscriptions_subscriber_channel"),
    )

    op.create_table(
        "likes",
        sa.Column("id", sa.Integer, primary_key=True),
        _reference(column="liker_id"),
        sa.Column("target_kind", content_kind, nullable=False, index=True),
        sa.Column("target_id", sa.Integer, nullable=False, index=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.UniqueConstraint("liker_id", "target_kind", "target_id", name="uq_likes_liker_target"),
    )

    op.create_table(
        "watch_history",
        sa.Column("id", sa.Integer, primary_key=True),
        _reference(column="user_id"),
        _reference("videos", "video_id"),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("watched_at", sa.DateTime, nullable=False),
        sa.UniqueConstraint("user_id", "video_id", name="uq_watch_history_user_video"),
    )

    op.create_table(
        "playlists",
        sa.Column("id", sa.Integer, primary_key=True),
        _reference(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )

    op.create_table(
        "playlist_videos",
        sa.Column("id", sa.Integer, primary_key=True),
        _reference("playlists", "playlist_id"),
        _reference("videos", "video_id"),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("added_at", sa.DateTime, nullable=False),
        sa.UniqueConstraint("playlist_id", "video_id", name="uq_playlist_videos_playlist_video"),
    )


def downgrade() -> None:
    op.drop_table("playlist_videos")
    op.drop_table("playlists")
    op.drop_table("watch_history")
    op.drop_table("likes")
    op.drop_table("subscriptions")
    op.drop_table("comments")
    op.drop_table("tweets")
    op.drop_table("videos")
    op.drop_table("users")
    content_kind.drop(op.get_bind(), checkfirst=True)
