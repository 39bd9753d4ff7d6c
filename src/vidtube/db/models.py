from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class ContentKind(str, Enum):
    """Kinds of owned content that can be liked and listed in feeds."""
    VIDEO = "video"
    COMMENT = "comment"
    TWEET = "tweet"


@dataclass(frozen=True)
class LikeTarget:
    """The single entity a like points at."""
    kind: ContentKind
    target_id: int

    def __post_init__(self):
        object.__setattr__(self, "kind", ContentKind(self.kind))
        if not isinstance(self.target_id, int) or self.target_id < 1:
            raise ValueError("Like target id must be a positive integer")


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True, max_length=50)
    email: str = Field(index=True, unique=True, max_length=255)
    fullname: str = Field(max_length=100)
    avatar: str = Field(max_length=512)
    cover_image: str = Field(default="", max_length=512)
    hashed_password: str
    refresh_token: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Video(SQLModel, table=True):
    __tablename__ = "videos"

    id: Optional[int] = Field(default=None, primary_key=True)
    video_file: str = Field(max_length=512)
    thumbnail: str = Field(default="", max_length=512)
    title: str = Field(max_length=255)
    description: str = Field(max_length=5000)
    duration: float = Field(default=0, ge=0)  # Reported by the media uploader only
    views: int = Field(default=0, ge=0)
    is_published: bool = Field(default=False)
    owner_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Tweet(SQLModel, table=True):
    __tablename__ = "tweets"

    id: Optional[int] = Field(default=None, primary_key=True)
    content: str = Field(max_length=1000)
    owner_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Comment(SQLModel, table=True):
    __tablename__ = "comments"

    id: Optional[int] = Field(default=None, primary_key=True)
    content: str = Field(max_length=1000)
    video_id: int = Field(foreign_key="videos.id", ondelete="CASCADE", index=True)
    owner_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Subscription(SQLModel, table=True):
    """A subscriber following a channel (both are users)."""
    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("subscriber_id", "channel_id", name="uq_subscriptions_subscriber_channel"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    subscriber_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    channel_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Like(SQLModel, table=True):
    """Existence of a row means the liker currently likes the target."""
    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint("liker_id", "target_kind", "target_id", name="uq_likes_liker_target"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    liker_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    target_kind: ContentKind = Field(index=True)
    target_id: int = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @classmethod
    def for_target(cls, liker_id: int, target: LikeTarget) -> "Like":
        return cls(liker_id=liker_id, target_kind=target.kind, target_id=target.target_id)

    @property
    def target(self) -> LikeTarget:
        return LikeTarget(kind=self.target_kind, target_id=self.target_id)


class WatchHistoryEntry(SQLModel, table=True):
    """One video in a user's watch history; higher position is more recent."""
    __tablename__ = "watch_history"
    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="uq_watch_history_user_video"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    video_id: int = Field(foreign_key="videos.id", ondelete="CASCADE", index=True)
    position: int = Field(default=0)
    watched_at: datetime = Field(default_factory=datetime.utcnow)


class Playlist(SQLModel, table=True):
    """User-created playlists for organizing videos."""
    __tablename__ = "playlists"

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    name: str = Field(max_length=100)
    description: Optional[str] = Field(default="", max_length=500)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class PlaylistVideo(SQLModel, table=True):
    """Videos in playlists."""
    __tablename__ = "playlist_videos"
    __table_args__ = (
        UniqueConstraint("playlist_id", "video_id", name="uq_playlist_videos_playlist_video"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    playlist_id: int = Field(foreign_key="playlists.id", ondelete="CASCADE", index=True)
    video_id: int = Field(foreign_key="videos.id", ondelete="CASCADE", index=True)
    position: int = Field(default=0)  # For ordering videos in playlist
    added_at: datetime = Field(default_factory=datetime.utcnow)
