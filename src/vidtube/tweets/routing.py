import logging

from fastapi import APIRouter, Depends

from vidtube.auth.utils import get_current_user
from vidtube.db.models import User
from vidtube.dependencies import get_read_models, get_write_model, page_params
from vidtube.read_models import PageRequest, ReadModelBuilder, tweet_view
from vidtube.responses import api_response
from vidtube.write_models import WriteModel
from .models import TweetContent

logger = logging.getLogger("tweets")

router = APIRouter(tags=["tweets"])


@router.post("/")
def create_tweet(
    payload: TweetContent,
    write_model: WriteModel = Depends(get_write_model),
    current_user: User = Depends(get_current_user),
):
    tweet = write_model.create_tweet(current_user, payload.content)
    return api_response(tweet_view(tweet, current_user), "Tweeted successfully", 201)


@router.get("/user/{user_id}")
def get_user_tweets(
    user_id: int,
    page: PageRequest = Depends(page_params),
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    tweets = read_models.tweet_feed(user_id, page)
    logger.info(f"Listed {len(tweets)} tweets of user {user_id}")
    return api_response(tweets, "User tweets fetched successfully")


@router.patch("/{tweet_id}")
def update_tweet(
    tweet_id: int,
    payload: TweetContent,
    write_model: WriteModel = Depends(get_write_model),
    current_user: User = Depends(get_current_user),
):
    tweet = write_model.update_tweet(tweet_id, current_user, payload.content)
    return api_response(tweet_view(tweet, current_user), "Tweet updated successfully")


@router.delete("/{tweet_id}")
def delete_tweet(
    tweet_id: int,
    write_model: WriteModel = Depends(get_write_model),
    current_user: User = Depends(get_current_user),
):
    write_model.delete_tweet(tweet_id, current_user)
    return api_response({"id": tweet_id}, "Tweet deleted successfully")
