from datetime import datetime, timedelta

import pytest

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
)
from vidtube.errors import BadRequestError, NotFoundError
from vidtube.read_models import PageRequest, ReadModelBuilder
from vidtube.storage import UploadResult
from vidtube.write_models import WriteModel

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


def make_user(session, username):
    user = User(
        username=username,
        email=f"{username}@example.com",
        fullname=username.capitalize(),
        avatar=f"https://cdn.test/avatars/{username}.png",
        hashed_password="x",
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_video(session, owner, title="Video", views=0, published=True, created_at=None):
    video = Video(
        video_file=f"https://cdn.test/videos/{title}.mp4",
        title=title,
        description=f"About {title}",
        duration=10,
        views=views,
        is_published=published,
        owner_id=owner.id,
        created_at=created_at or BASE_TIME,
    )
    session.add(video)
    session.commit()
    session.refresh(video)
    return video


@pytest.fixture
def read_models(session):
    return ReadModelBuilder(session)


@pytest.fixture
def write_model(session):
    return WriteModel(session)


def test_profile_counts_match_subscriptions(session, read_models):
    alice = make_user(session, "alice")
    others = [make_user(session, f"fan{i}") for i in range(3)]
    for fan in others:
        session.add(Subscription(subscriber_id=fan.id, channel_id=alice.id))
    session.add(Subscription(subscriber_id=alice.id, channel_id=others[0].id))
    session.commit()

    profile = read_models.channel_profile("alice", others[1].id)
    assert profile.subscriber_count == 3
    assert profile.subscribed_to_count == 1
    assert profile.is_viewer_subscribed is True

    anonymous = read_models.channel_profile("alice", None)
    assert anonymous.is_viewer_subscribed is False


def test_profile_requires_username(read_models):
    with pytest.raises(BadRequestError):
        read_models.channel_profile("   ", None)
    with pytest.raises(NotFoundError):
        read_models.channel_profile("nobody", None)


def test_stats_default_to_zero(session, read_models):
    owner = make_user(session, "quiet")
    stats = read_models.channel_stats(owner.id)
    assert stats.model_dump() == {
        "total_videos": 0,
        "total_views": 0,
        "total_likes": 0,
        "total_subscribers": 0,
    }


def test_stats_count_videos_views_likes_and_subscribers(session, read_models):
    owner = make_user(session, "creator")
    fan = make_user(session, "fan")
    first = make_video(session, owner, "first", views=5)
    make_video(session, owner, "second", views=7, published=False)
    session.add(Like.for_target(fan.id, LikeTarget(ContentKind.VIDEO, first.id)))
    session.add(Like.for_target(owner.id, LikeTarget(ContentKind.VIDEO, first.id)))
    session.add(Subscription(subscriber_id=fan.id, channel_id=owner.id))
    session.commit()

    stats = read_models.channel_stats(owner.id)
    assert stats.total_videos == 2
    assert stats.total_views == 12
    assert stats.total_likes == 2
    assert stats.total_subscribers == 1


def test_second_page_holds_the_remainder(session, read_models):
    owner = make_user(session, "prolific")
    for i in range(15):
        make_video(session, owner, f"v{i:02d}", created_at=BASE_TIME + timedelta(minutes=i))

    page = read_models.video_feed(PageRequest(page=2, page_size=10), owner_id=owner.id)
    assert [v.title for v in page] == ["v04", "v03", "v02", "v01", "v00"]

    ascending = read_models.video_feed(
        PageRequest(page=1, page_size=3, sort_by="createdAt", sort_type="asc"), owner_id=owner.id
    )
    assert [v.title for v in ascending] == ["v00", "v01", "v02"]

    assert read_models.video_feed(PageRequest(page=3, page_size=10), owner_id=owner.id) == []


def test_feed_sorts_by_allowed_fields_only(session, read_models):
    owner = make_user(session, "sorter")
    make_video(session, owner, "low", views=1)
    make_video(session, owner, "high", views=100)
    make_video(session, owner, "mid", views=50)

    by_views = read_models.video_feed(PageRequest(sort_by="views", sort_type="desc"))
    assert [v.title for v in by_views] == ["high", "mid", "low"]

    with pytest.raises(BadRequestError):
        read_models.video_feed(PageRequest(sort_by="hashed_password"))
    with pytest.raises(BadRequestError):
        read_models.video_feed(PageRequest(sort_type="sideways"))
    with pytest.raises(BadRequestError):
        read_models.video_feed(PageRequest(page=0))
    with pytest.raises(BadRequestError):
        read_models.tweet_feed(owner.id, PageRequest(sort_by="views"))


def test_ties_keep_a_stable_order(session, read_models):
    owner = make_user(session, "twins")
    ids = [make_video(session, owner, f"same{i}").id for i in range(4)]

    first = read_models.video_feed(PageRequest(page=1, page_size=2))
    second = read_models.video_feed(PageRequest(page=2, page_size=2))
    assert [v.id for v in first + second] == sorted(ids, reverse=True)


def test_feed_hides_unpublished_unless_asked(session, read_models):
    owner = make_user(session, "drafts")
    make_video(session, owner, "public")
    make_video(session, owner, "draft", published=False)

    assert [v.title for v in read_models.video_feed(PageRequest())] == ["public"]
    everything = read_models.video_feed(PageRequest(), owner_id=owner.id, include_unpublished=True)
    assert {v.title for v in everything} == {"public", "draft"}


def test_feed_items_carry_owner_projection(session, read_models):
    owner = make_user(session, "shown")
    session.add(Tweet(content="hello", owner_id=owner.id))
    session.commit()

    tweet = read_models.tweet_feed(owner.id, PageRequest())[0]
    assert tweet.owner.model_dump() == {"id": owner.id, "username": "shown", "avatar": owner.avatar}


def test_watch_history_most_recent_first(session, read_models, write_model):
    viewer = make_user(session, "viewer")
    owner = make_user(session, "owner")
    a = make_video(session, owner, "a")
    b = make_video(session, owner, "b")
    c = make_video(session, owner, "c")

    assert read_models.watch_history(viewer.id) == []

    for video in (a, b, c, a):
        write_model.record_view(video, viewer)

    history = read_models.watch_history(viewer.id)
    assert [v.title for v in history] == ["a", "c", "b"]
    assert history[0].views == 2


def test_liked_items_most_recent_first(session, read_models, write_model):
    liker = make_user(session, "liker")
    owner = make_user(session, "owner")
    v1 = make_video(session, owner, "one")
    v2 = make_video(session, owner, "two")
    tweet = Tweet(content="liked tweet", owner_id=owner.id)
    session.add(tweet)
    session.commit()

    assert write_model.toggle_like(liker, LikeTarget(ContentKind.VIDEO, v1.id)) is True
    assert write_model.toggle_like(liker, LikeTarget(ContentKind.VIDEO, v2.id)) is True
    assert write_model.toggle_like(liker, LikeTarget(ContentKind.TWEET, tweet.id)) is True

    videos = read_models.liked_items(liker.id, ContentKind.VIDEO)
    assert [v.title for v in videos] == ["two", "one"]
    tweets = read_models.liked_items(liker.id, ContentKind.TWEET)
    assert [t.content for t in tweets] == ["liked tweet"]
    assert read_models.liked_items(liker.id, ContentKind.COMMENT) == []


def test_toggling_twice_leaves_no_like(session, read_models, write_model):
    liker = make_user(session, "fickle")
    owner = make_user(session, "author")
    video = make_video(session, owner, "maybe")
    comment = Comment(content="nice", video_id=video.id, owner_id=owner.id)
    session.add(comment)
    session.commit()

    target = LikeTarget(ContentKind.COMMENT, comment.id)
    assert write_model.toggle_like(liker, target) is True
    assert write_model.toggle_like(liker, target) is False
    assert read_models.liked_items(liker.id, ContentKind.COMMENT) == []

    with pytest.raises(NotFoundError):
        write_model.toggle_like(liker, LikeTarget(ContentKind.TWEET, 999))


def test_like_target_rejects_bad_ids():
    with pytest.raises(ValueError):
        LikeTarget(ContentKind.VIDEO, 0)
    with pytest.raises(ValueError):
        LikeTarget("podcast", 1)
    assert LikeTarget("video", 3).kind is ContentKind.VIDEO


def test_published_video_keeps_uploaded_duration(session, write_model):
    owner = make_user(session, "uploader")
    video = write_model.publish_video(
        owner,
        " Title ",
        "Description",
        UploadResult(url="https://cdn.test/videos/x.mp4", duration=93.2),
    )
    assert video.title == "Title"
    assert video.duration == 93.2
    assert video.is_published is False

    with pytest.raises(BadRequestError):
        write_model.publish_video(owner, "", "d", UploadResult(url="u"))


def test_page_limit_is_capped():
    assert PageRequest(page=3, page_size=10_000).limit == 100
    assert PageRequest(page=3, page_size=20).offset == 40


def test_delete_video_returns_nothing(session, write_model):
    owner = make_user(session, "tidy")
    video = make_video(session, owner, "gone")
    video_id = video.id
    assert write_model.delete_video(video_id, owner) is None
    assert session.get(Video, video_id) is None


def test_playlist_reads_respect_viewer(session, read_models):
    owner = make_user(session, "keeper")
    viewer = make_user(session, "guest")
    public = make_video(session, owner, "public")
    draft = make_video(session, owner, "draft", published=False)
    playlist = Playlist(owner_id=owner.id, name="Mixed")
    session.add(playlist)
    session.commit()
    session.refresh(playlist)
    for position, video in enumerate((public, draft)):
        session.add(PlaylistVideo(playlist_id=playlist.id, video_id=video.id, position=position))
    session.commit()

    assert [v.title for v in read_models.playlist_detail(playlist.id, owner.id).videos] == ["public", "draft"]
    assert [v.title for v in read_models.playlist_detail(playlist.id, viewer.id).videos] == ["public"]
    assert [p.video_count for p in read_models.user_playlists(owner.id, owner.id)] == [2]
    assert [p.video_count for p in read_models.user_playlists(owner.id, viewer.id)] == [1]
    assert [p.video_count for p in read_models.user_playlists(owner.id, None)] == [1]
