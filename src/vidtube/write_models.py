"""Single-entity mutations with validation and ownership checks."""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from vidtube.db.models import (
    Comment,
    ContentKind,
    Like,
    LikeTarget,
    Playlist,
    PlaylistVideo,
    Subscription,
    Tweet,
    User,
    Video,
    WatchHistoryEntry,
)
from vidtube.errors import BadRequestError, ForbiddenError, NotFoundError
from vidtube.storage import UploadResult

logger = logging.getLogger("write_models")

LIKE_TARGET_MODELS = {
    ContentKind.VIDEO: Video,
    ContentKind.COMMENT: Comment,
    ContentKind.TWEET: Tweet,
}


def require_text(value: Optional[str], field: str, max_length: Optional[int] = None) -> str:
    if value is None or not value.strip():
        raise BadRequestError(f"{field} is required")
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        raise BadRequestError(f"{field} too long (max {max_length} characters)")
    return value


def _check_owner(entity, user: User, action: str, noun: str) -> None:
    if entity.owner_id != user.id:
        logger.warning(f"User {user.id} denied {action} on {noun} {entity.id}")
        raise ForbiddenError(f"Not authorized to {action} this {noun}")


def _visible_to(video: Video, viewer: Optional[User]) -> bool:
    return video.is_published or (viewer is not None and video.owner_id == viewer.id)


class WriteModel:
    def __init__(self, session: Session):
        self.session = session

    def _save(self, entity):
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return entity

    def _delete(self, entity) -> None:
        self.session.delete(entity)
        self.session.commit()

    # Videos

    def get_video(self, video_id: int, viewer: Optional[User] = None) -> Video:
        """Fetch a video; unpublished videos exist only for their owner."""
        video = self.session.get(Video, video_id)
        if video is None or not _visible_to(video, viewer):
            logger.warning(f"Video not found: {video_id}")
            raise NotFoundError("Video not found")
        return video

    def owned_video(self, video_id: int, owner: User, action: str = "edit") -> Video:
        video = self.get_video(video_id, owner)
        _check_owner(video, owner, action, "video")
        return video

    def publish_video(
        self,
        owner: User,
        title: Optional[str],
        description: Optional[str],
        video_file: UploadResult,
        thumbnail: Optional[UploadResult] = None,
    ) -> Video:
        video = Video(
            video_file=video_file.url,
            thumbnail=thumbnail.url if thumbnail else "",
            title=require_text(title, "Title", 255),
            description=require_text(description, "Description", 5000),
            duration=video_file.duration or 0,
            views=0,
            is_published=False,
            owner_id=owner.id,
        )
        self._save(video)
        logger.info(f"User {owner.id} uploaded video {video.id}")
        return video

    def update_video(
        self,
        video_id: int,
        owner: User,
        title: Optional[str] = None,
        description: Optional[str] = None,
        thumbnail: Optional[UploadResult] = None,
    ) -> Video:
        video = self.owned_video(video_id, owner)
        if title is not None:
            video.title = require_text(title, "Title", 255)
        if description is not None:
            video.description = require_text(description, "Description", 5000)
        if thumbnail is not None:
            video.thumbnail = thumbnail.url
        video.updated_at = datetime.utcnow()
        self._save(video)
        logger.info(f"User {owner.id} updated video {video_id}")
        return video

    def delete_video(self, video_id: int, owner: User) -> None:
        video = self.owned_video(video_id, owner, "delete")
        self._delete(video)
        logger.info(f"User {owner.id} deleted video {video_id}")

    def toggle_publish(self, video_id: int, owner: User) -> Video:
        video = self.owned_video(video_id, owner, "publish")
        video.is_published = not video.is_published
        video.updated_at = datetime.utcnow()
        self._save(video)
        logger.info(f"User {owner.id} set video {video_id} published={video.is_published}")
        return video

    def record_view(self, video: Video, viewer: User) -> Video:
        """Count a view and move the video to the front of the viewer's history."""
        video.views += 1
        self.session.add(video)

        next_position = self.session.exec(
            select(func.coalesce(func.max(WatchHistoryEntry.position), 0))
            .where(WatchHistoryEntry.user_id == viewer.id)
        ).one() + 1
        entry = self.session.exec(
            select(WatchHistoryEntry).where(
                WatchHistoryEntry.user_id == viewer.id,
                WatchHistoryEntry.video_id == video.id,
            )
        ).first()
        if entry is None:
            entry = WatchHistoryEntry(user_id=viewer.id, video_id=video.id)
        entry.position = next_position
        entry.watched_at = datetime.utcnow()
        self.session.add(entry)
        self.session.commit()
        self.session.refresh(video)
        return video

    # Tweets

    def create_tweet(self, owner: User, content: Optional[str]) -> Tweet:
        tweet = self._save(Tweet(content=require_text(content, "Tweet content", 1000), owner_id=owner.id))
        logger.info(f"User {owner.id} tweeted {tweet.id}")
        return tweet

    def update_tweet(self, tweet_id: int, owner: User, content: Optional[str]) -> Tweet:
        content = require_text(content, "Tweet content", 1000)
        tweet = self.session.get(Tweet, tweet_id)
        if tweet is None:
            raise NotFoundError("Tweet not found")
        _check_owner(tweet, owner, "edit", "tweet")
        tweet.content = content
        tweet.updated_at = datetime.utcnow()
        self._save(tweet)
        logger.info(f"User {owner.id} updated tweet {tweet_id}")
        return tweet

    def delete_tweet(self, tweet_id: int, owner: User) -> None:
        tweet = self.session.get(Tweet, tweet_id)
        if tweet is None:
            raise NotFoundError("Tweet not found")
        _check_owner(tweet, owner, "delete", "tweet")
        self._delete(tweet)
        logger.info(f"User {owner.id} deleted tweet {tweet_id}")

    # Comments

    def add_comment(self, video_id: int, owner: User, content: Optional[str]) -> Comment:
        content = require_text(content, "Comment content", 1000)
        video = self.get_video(video_id, owner)
        comment = self._save(Comment(content=content, video_id=video.id, owner_id=owner.id))
        logger.info(f"User {owner.id} commented on video {video_id}")
        return comment

    def update_comment(self, comment_id: int, owner: User, content: Optional[str]) -> Comment:
        content = require_text(content, "Comment content", 1000)
        comment = self.session.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        _check_owner(comment, owner, "edit", "comment")
        comment.content = content
        comment.updated_at = datetime.utcnow()
        self._save(comment)
        logger.info(f"User {owner.id} updated comment {comment_id}")
        return comment

    def delete_comment(self, comment_id: int, owner: User) -> None:
        comment = self.session.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        _check_owner(comment, owner, "delete", "comment")
        self._delete(comment)
        logger.info(f"User {owner.id} deleted comment {comment_id}")

    # Likes

    def _require_visible_target(self, liker: User, target: LikeTarget) -> None:
        """The target must exist and, for videos and their comments, be visible to the liker."""
        if target.kind == ContentKind.VIDEO:
            self.get_video(target.target_id, liker)
            return

        entity = self.session.get(LIKE_TARGET_MODELS[target.kind], target.target_id)
        if entity is not None and target.kind == ContentKind.COMMENT:
            video = self.session.get(Video, entity.video_id)
            if video is None or not _visible_to(video, liker):
                entity = None
        if entity is None:
            logger.warning(f"Like target not found: {target.kind.value} {target.target_id}")
            raise NotFoundError(f"{target.kind.value.capitalize()} not found")

    def toggle_like(self, liker: User, target: LikeTarget) -> bool:
        """Like the target if not liked yet, otherwise remove the like.

        Returns whether the target is liked afterwards.
        """
        self._require_visible_target(liker, target)

        existing = self.session.exec(
            select(Like).where(
                Like.liker_id == liker.id,
                Like.target_kind == target.kind,
                Like.target_id == target.target_id,
            )
        ).first()
        if existing is not None:
            self._delete(existing)
            logger.info(f"User {liker.id} unliked {target.kind.value} {target.target_id}")
            return False

        self._save(Like.for_target(liker.id, target))
        logger.info(f"User {liker.id} liked {target.kind.value} {target.target_id}")
        return True

    # Subscriptions

    def toggle_subscription(self, subscriber: User, channel_id: int) -> bool:
        """Subscribe to the channel if not subscribed yet, otherwise unsubscribe.

        Returns whether the subscriber is subscribed afterwards.
        """
        if channel_id == subscriber.id:
            raise BadRequestError("Cannot subscribe to your own channel")
        if self.session.get(User, channel_id) is None:
            raise NotFoundError("Channel does not exist")

        existing = self.session.exec(
            select(Subscription).where(
                Subscription.subscriber_id == subscriber.id,
                Subscription.channel_id == channel_id,
            )
        ).first()
        if existing is not None:
            self._delete(existing)
            logger.info(f"User {subscriber.id} unsubscribed from {channel_id}")
            return False

        self._save(Subscription(subscriber_id=subscriber.id, channel_id=channel_id))
        logger.info(f"User {subscriber.id} subscribed to {channel_id}")
        return True

    # Playlists

    def _owned_playlist(self, playlist_id: int, owner: User, action: str) -> Playlist:
        playlist = self.session.get(Playlist, playlist_id)
        if playlist is None:
            raise NotFoundError("Playlist not found")
        _check_owner(playlist, owner, action, "playlist")
        return playlist

    def create_playlist(self, owner: User, name: Optional[str], description: Optional[str] = None) -> Playlist:
        playlist = Playlist(
            owner_id=owner.id,
            name=require_text(name, "Playlist name", 100),
            description=(description or "").strip(),
        )
        if len(playlist.description) > 500:
            raise BadRequestError("Description too long (max 500 characters)")
        self._save(playlist)
        logger.info(f"User {owner.id} created playlist {playlist.id}")
        return playlist

    def update_playlist(
        self,
        playlist_id: int,
        owner: User,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Playlist:
        playlist = self._owned_playlist(playlist_id, owner, "edit")
        if name is not None:
            playlist.name = require_text(name, "Playlist name", 100)
        if description is not None:
            if len(description) > 500:
                raise BadRequestError("Description too long (max 500 characters)")
            playlist.description = description.strip()
        playlist.updated_at = datetime.utcnow()
        self._save(playlist)
        logger.info(f"User {owner.id} updated playlist {playlist_id}")
        return playlist

    def delete_playlist(self, playlist_id: int, owner: User) -> None:
        playlist = self._owned_playlist(playlist_id, owner, "delete")
        for item in self.session.exec(
            select(PlaylistVideo).where(PlaylistVideo.playlist_id == playlist_id)
        ).all():
            self.session.delete(item)
        self._delete(playlist)
        logger.info(f"User {owner.id} deleted playlist {playlist_id}")

    def add_video_to_playlist(self, playlist_id: int, video_id: int, owner: User) -> Playlist:
        playlist = self._owned_playlist(playlist_id, owner, "edit")
        video = self.get_video(video_id, owner)

        existing = self.session.exec(
            select(PlaylistVideo).where(
                PlaylistVideo.playlist_id == playlist_id,
                PlaylistVideo.video_id == video.id,
            )
        ).first()
        if existing is None:
            next_position = self.session.exec(
                select(func.coalesce(func.max(PlaylistVideo.position), -1))
                .where(PlaylistVideo.playlist_id == playlist_id)
            ).one() + 1
            self.session.add(PlaylistVideo(playlist_id=playlist_id, video_id=video.id, position=next_position))
            playlist.updated_at = datetime.utcnow()
            self._save(playlist)
            logger.info(f"User {owner.id} added video {video_id} to playlist {playlist_id}")
        return playlist

    def remove_video_from_playlist(self, playlist_id: int, video_id: int, owner: User) -> Playlist:
        playlist = self._owned_playlist(playlist_id, owner, "edit")
        item = self.session.exec(
            select(PlaylistVideo).where(
                PlaylistVideo.playlist_id == playlist_id,
                PlaylistVideo.video_id == video_id,
            )
        ).first()
        if item is None:
            raise NotFoundError("Video not found in playlist")
        self.session.delete(item)
        playlist.updated_at = datetime.utcnow()
        self._save(playlist)
        logger.info(f"User {owner.id} removed video {video_id} from playlist {playlist_id}")
        return playlist
