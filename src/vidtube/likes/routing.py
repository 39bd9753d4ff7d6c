import logging

from fastapi import APIRouter, Depends

from vidtube.auth.utils import get_current_user
from vidtube.db.models import ContentKind, LikeTarget, User
from vidtube.dependencies import get_read_models, get_write_model
from vidtube.read_models import ReadModelBuilder
from vidtube.responses import api_response
from vidtube.write_models import WriteModel

logger = logging.getLogger("likes")

router = APIRouter(tags=["likes"])


def _toggle(write_model: WriteModel, user: User, kind: ContentKind, target_id: int):
    liked = write_model.toggle_like(user, LikeTarget(kind=kind, target_id=target_id))
    if liked:
        return api_response({"isLiked": True}, "Like added", 201)
    return api_response({"isLiked": False}, "Like removed")


@router.post("/toggle/v/{video_id}")
def toggle_video_like(
    video_id: int,
    write_model: WriteModel = Depends(get_write_model),
    current_user: User = Depends(get_current_user),
):
    """
    Like a video, or remove the like if it is already liked.
    """
    return _toggle(write_model, current_user, ContentKind.VIDEO, video_id)


@router.post("/toggle/c/{comment_id}")
def toggle_comment_like(
    comment_id: int,
    write_model: WriteModel = Depends(get_write_model),
    current_user: User = Depends(get_current_user),
):
    return _toggle(write_model, current_user, ContentKind.COMMENT, comment_id)


@router.post("/toggle/t/{tweet_id}")
def toggle_tweet_like(
    tweet_id: int,
    write_model: WriteModel = Depends(get_write_model),
    current_user: User = Depends(get_current_user),
):
    return _toggle(write_model, current_user, ContentKind.TWEET, tweet_id)


@router.get("/videos")
def get_liked_videos(
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    videos = read_models.liked_items(current_user.id, ContentKind.VIDEO)
    return api_response(videos, "Liked videos fetched successfully")


@router.get("/tweets")
def get_liked_tweets(
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    tweets = read_models.liked_items(current_user.id, ContentKind.TWEET)
    return api_response(tweets, "Liked tweets fetched successfully")


@router.get("/comments")
def get_liked_comments(
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    comments = read_models.liked_items(current_user.id, ContentKind.COMMENT)
    return api_response(comments, "Liked comments fetched successfully")
