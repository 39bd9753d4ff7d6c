"""Denormalised read models built by joining entities at query time.

Nothing in this module writes to the store. Every view is recomputed per call;
there is no caching layer.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import and_, false, func, or_
from sqlmodel import Session, select

from vidtube.config import settings
from vidtube.db.models import (
    Comment,
    ContentKind,
    Like,
    Playlist,
    PlaylistVideo,
    Subscription,
    Tweet,
    User,
    Video,
    WatchHistoryEntry,
)
from vidtube.errors import BadRequestError, NotFoundError
from vidtube.responses import CamelModel

logger = logging.getLogger("read_models")

SORT_DIRECTIONS = ("asc", "desc")


class OwnerView(CamelModel):
    id: int
    username: str
    avatar: str


class VideoView(CamelModel):
    id: int
    video_file: str
    thumbnail: str
    title: str
    description: str
    duration: float
    views: int
    is_published: bool
    created_at: datetime
    updated_at: datetime
    owner: OwnerView


class TweetView(CamelModel):
    id: int
    content: str
    created_at: datetime
    updated_at: datetime
    owner: OwnerView


class CommentView(CamelModel):
    id: int
    content: str
    video_id: int
    created_at: datetime
    updated_at: datetime
    owner: OwnerView


class ChannelProfile(CamelModel):
    id: int
    username: str
    fullname: str
    avatar: str
    cover_image: str
    created_at: datetime
    subscriber_count: int
    subscribed_to_count: int
    is_viewer_subscribed: bool


class ChannelStats(CamelModel):
    total_videos: int = 0
    total_views: int = 0
    total_likes: int = 0
    total_subscribers: int = 0


class PlaylistSummary(CamelModel):
    id: int
    name: str
    description: str
    video_count: int
    created_at: datetime
    updated_at: datetime
    owner: OwnerView


class PlaylistDetail(PlaylistSummary):
    videos: List[VideoView]


def visible_videos(viewer_id: Optional[int]):
    """Published videos, plus the viewer's own drafts."""
    if viewer_id is None:
        return Video.is_published == True  # noqa: E712
    return or_(Video.is_published == True, Video.owner_id == viewer_id)  # noqa: E712


def owner_view(user: User) -> OwnerView:
    return OwnerView(id=user.id, username=user.username, avatar=user.avatar)


def video_view(video: Video, owner: User) -> VideoView:
    return VideoView(
        id=video.id,
        video_file=video.video_file,
        thumbnail=video.thumbnail,
        title=video.title,
        description=video.description,
        duration=video.duration,
        views=video.views,
        is_published=video.is_published,
        created_at=video.created_at,
        updated_at=video.updated_at,
        owner=owner_view(owner),
    )


def tweet_view(tweet: Tweet, owner: User) -> TweetView:
    return TweetView(
        id=tweet.id,
        content=tweet.content,
        created_at=tweet.created_at,
        updated_at=tweet.updated_at,
        owner=owner_view(owner),
    )


def comment_view(comment: Comment, owner: User) -> CommentView:
    return CommentView(
        id=comment.id,
        content=comment.content,
        video_id=comment.video_id,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        owner=owner_view(owner),
    )


@dataclass(frozen=True)
class FeedSource:
    model: Any
    sort_fields: Mapping[str, Any]
    to_view: Callable[[Any, User], CamelModel]


# Public sort names map to columns; anything else is rejected.
FEED_SOURCES: Dict[ContentKind, FeedSource] = {
    ContentKind.VIDEO: FeedSource(
        model=Video,
        sort_fields={
            "createdAt": Video.created_at,
            "updatedAt": Video.updated_at,
            "views": Video.views,
            "duration": Video.duration,
            "title": Video.title,
        },
        to_view=video_view,
    ),
    ContentKind.TWEET: FeedSource(
        model=Tweet,
        sort_fields={"createdAt": Tweet.created_at, "updatedAt": Tweet.updated_at},
        to_view=tweet_view,
    ),
    ContentKind.COMMENT: FeedSource(
        model=Comment,
        sort_fields={"createdAt": Comment.created_at, "updatedAt": Comment.updated_at},
        to_view=comment_view,
    ),
}


@dataclass
class PageRequest:
    page: int = 1
    page_size: int = settings.DEFAULT_PAGE_SIZE
    sort_by: str = "createdAt"
    sort_type: str = "desc"

    @property
    def limit(self) -> int:
        return min(self.page_size, settings.MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def validate(self, sort_fields: Mapping[str, Any]) -> None:
        if self.page < 1:
            raise BadRequestError("page must be a positive integer")
        if self.page_size < 1:
            raise BadRequestError("limit must be a positive integer")
        if self.sort_by not in sort_fields:
            allowed = ", ".join(sorted(sort_fields))
            raise BadRequestError(f"Cannot sort by '{self.sort_by}'. Allowed fields: {allowed}")
        if self.sort_type not in SORT_DIRECTIONS:
            raise BadRequestError("sortType must be 'asc' or 'desc'")


class ReadModelBuilder:
    def __init__(self, session: Session):
        self.session = session

    def channel_profile(self, username: str, viewer_id: Optional[int]) -> ChannelProfile:
        """Public profile of a channel with subscription counts for the viewer."""
        username = (username or "").strip().lower()
        if not username:
            raise BadRequestError("Username is required")

        subscriber_count = (
            select(func.count(Subscription.id))
            .where(Subscription.channel_id == User.id)
            .scalar_subquery()
        )
        subscribed_to_count = (
            select(func.count(Subscription.id))
            .where(Subscription.subscriber_id == User.id)
            .scalar_subquery()
        )
        if viewer_id is None:
            is_subscribed = false()
        else:
            is_subscribed = (
                select(Subscription.id)
                .where(
                    Subscription.channel_id == User.id,
                    Subscription.subscriber_id == viewer_id,
                )
                .exists()
            )

        row = self.session.exec(
            select(
                User,
                subscriber_count.label("subscriber_count"),
                subscribed_to_count.label("subscribed_to_count"),
                is_subscribed.label("is_viewer_subscribed"),
            ).where(User.username == username)
        ).first()
        if row is None:
            logger.warning(f"Channel not found: {username}")
            raise NotFoundError("Channel does not exist")

        user, subscribers, subscribed_to, viewer_subscribed = row
        return ChannelProfile(
            id=user.id,
            username=user.username,
            fullname=user.fullname,
            avatar=user.avatar,
            cover_image=user.cover_image,
            created_at=user.created_at,
            subscriber_count=subscribers or 0,
            subscribed_to_count=subscribed_to or 0,
            is_viewer_subscribed=bool(viewer_subscribed),
        )

    def watch_history(self, viewer_id: int) -> List[VideoView]:
        """Videos the viewer has watched, most recent first."""
        rows = self.session.exec(
            select(Video, User)
            .join(WatchHistoryEntry, WatchHistoryEntry.video_id == Video.id)
            .join(User, Video.owner_id == User.id)
            .where(WatchHistoryEntry.user_id == viewer_id, visible_videos(viewer_id))
            .order_by(WatchHistoryEntry.position.desc(), WatchHistoryEntry.id.desc())
        ).all()
        return [video_view(video, owner) for video, owner in rows]

    def channel_stats(self, owner_id: int) -> ChannelStats:
        total_videos, total_views = self.session.exec(
            select(func.count(Video.id), func.coalesce(func.sum(Video.views), 0))
            .where(Video.owner_id == owner_id)
        ).one()

        owner_videos = select(Video.id).where(Video.owner_id == owner_id)
        total_likes = self.session.exec(
            select(func.count(Like.id)).where(
                Like.target_kind == ContentKind.VIDEO,
                Like.target_id.in_(owner_videos),
            )
        ).one()

        total_subscribers = self.session.exec(
            select(func.count(Subscription.id)).where(Subscription.channel_id == owner_id)
        ).one()

        return ChannelStats(
            total_videos=total_videos or 0,
            total_views=total_views or 0,
            total_likes=total_likes or 0,
            total_subscribers=total_subscribers or 0,
        )

    def paginated_feed(
        self,
        kind: ContentKind,
        filters: Sequence[Any],
        page: PageRequest,
    ) -> List[CamelModel]:
        """Items of one kind joined to their owners, sorted and paged.

        ``filters`` are SQL expressions over the source model. ``page.sort_by``
        must be one of the source's public sort names.
        """
        source = FEED_SOURCES[kind]
        page.validate(source.sort_fields)

        column = source.sort_fields[page.sort_by]
        if page.sort_type == "asc":
            ordering = (column.asc(), source.model.id.asc())
        else:
            ordering = (column.desc(), source.model.id.desc())

        rows = self.session.exec(
            select(source.model, User)
            .join(User, source.model.owner_id == User.id)
            .where(*filters)
            .order_by(*ordering)
            .offset(page.offset)
            .limit(page.limit)
        ).all()
        return [source.to_view(item, owner) for item, owner in rows]

    def video_feed(
        self,
        page: PageRequest,
        owner_id: Optional[int] = None,
        query: Optional[str] = None,
        include_unpublished: bool = False,
    ) -> List[VideoView]:
        filters = []
        if owner_id is not None:
            filters.append(Video.owner_id == owner_id)
        if query and query.strip():
            pattern = f"%{query.strip()}%"
            filters.append(or_(Video.title.ilike(pattern), Video.description.ilike(pattern)))
        if not include_unpublished:
            filters.append(visible_videos(None))
        return self.paginated_feed(ContentKind.VIDEO, filters, page)

    def tweet_feed(self, owner_id: int, page: PageRequest) -> List[TweetView]:
        return self.paginated_feed(ContentKind.TWEET, [Tweet.owner_id == owner_id], page)

    def comment_feed(self, video_id: int, page: PageRequest) -> List[CommentView]:
        return self.paginated_feed(ContentKind.COMMENT, [Comment.video_id == video_id], page)

    def liked_items(self, liker_id: int, kind: ContentKind) -> List[CamelModel]:
        """Entities of ``kind`` the liker has liked, most recently liked first."""
        kind = ContentKind(kind)
        source = FEED_SOURCES[kind]
        model = source.model
        statement = (
            select(model, User)
            .join(Like, and_(Like.target_kind == kind, Like.target_id == model.id))
            .join(User, model.owner_id == User.id)
            .where(Like.liker_id == liker_id)
        )
        # Likes on videos that have since been unpublished are hidden, not deleted.
        if kind == ContentKind.VIDEO:
            statement = statement.where(visible_videos(liker_id))
        elif kind == ContentKind.COMMENT:
            statement = statement.join(Video, Comment.video_id == Video.id).where(visible_videos(liker_id))
        rows = self.session.exec(
            statement.order_by(Like.created_at.desc(), Like.id.desc())
        ).all()
        return [source.to_view(item, owner) for item, owner in rows]

    def video_detail(self, video_id: int) -> VideoView:
        row = self.session.exec(
            select(Video, User)
            .join(User, Video.owner_id == User.id)
            .where(Video.id == video_id)
        ).first()
        if row is None:
            raise NotFoundError("Video not found")
        return video_view(*row)

    def channel_subscribers(self, channel_id: int) -> List[OwnerView]:
        users = self.session.exec(
            select(User)
            .join(Subscription, Subscription.subscriber_id == User.id)
            .where(Subscription.channel_id == channel_id)
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        ).all()
        return [owner_view(user) for user in users]

    def subscribed_channels(self, subscriber_id: int) -> List[OwnerView]:
        users = self.session.exec(
            select(User)
            .join(Subscription, Subscription.channel_id == User.id)
            .where(Subscription.subscriber_id == subscriber_id)
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        ).all()
        return [owner_view(user) for user in users]

    def user_playlists(self, owner_id: int, viewer_id: Optional[int]) -> List[PlaylistSummary]:
        """The owner's playlists; counts include only videos the viewer may see."""
        rows = self.session.exec(
            select(Playlist, User, func.count(Video.id))
            .join(User, Playlist.owner_id == User.id)
            .outerjoin(PlaylistVideo, PlaylistVideo.playlist_id == Playlist.id)
            .outerjoin(Video, and_(Video.id == PlaylistVideo.video_id, visible_videos(viewer_id)))
            .where(Playlist.owner_id == owner_id)
            .group_by(Playlist.id, User.id)
            .order_by(Playlist.updated_at.desc(), Playlist.id.desc())
        ).all()
        return [
            PlaylistSummary(
                id=playlist.id,
                name=playlist.name,
                description=playlist.description or "",
                video_count=count or 0,
                created_at=playlist.created_at,
                updated_at=playlist.updated_at,
                owner=owner_view(owner),
            )
            for playlist, owner, count in rows
        ]

    def playlist_detail(self, playlist_id: int, viewer_id: Optional[int]) -> PlaylistDetail:
        row = self.session.exec(
            select(Playlist, User)
            .join(User, Playlist.owner_id == User.id)
            .where(Playlist.id == playlist_id)
        ).first()
        if row is None:
            raise NotFoundError("Playlist not found")
        playlist, owner = row

        video_rows = self.session.exec(
            select(Video, User)
            .join(PlaylistVideo, PlaylistVideo.video_id == Video.id)
            .join(User, Video.owner_id == User.id)
            .where(PlaylistVideo.playlist_id == playlist_id, visible_videos(viewer_id))
            .order_by(PlaylistVideo.position, PlaylistVideo.added_at, PlaylistVideo.id)
        ).all()
        videos = [video_view(video, video_owner) for video, video_owner in video_rows]
        return PlaylistDetail(
            id=playlist.id,
            name=playlist.name,
            description=playlist.description or "",
            video_count=len(videos),
            created_at=playlist.created_at,
            updated_at=playlist.updated_at,
            owner=owner_view(owner),
            videos=videos,
        )
