import logging

from fastapi import APIRouter, Depends

from vidtube.auth.utils import get_current_user
from vidtube.db.models import User
from vidtube.dependencies import get_read_models, get_write_model
from vidtube.read_models import ReadModelBuilder
from vidtube.responses import api_response
from vidtube.write_models import WriteModel

logger = logging.getLogger("subscriptions")

router = APIRouter(tags=["subscriptions"])


@router.post("/c/{channel_id}")
def toggle_subscription(
    channel_id: int,
    write_model: WriteModel = Depends(get_write_model),
    current_user: User = Depends(get_current_user),
):
    subscribed = write_model.toggle_subscription(current_user, channel_id)
    if subscribed:
        return api_response({"isSubscribed": True}, "Subscribed successfully", 201)
    return api_response({"isSubscribed": False}, "Unsubscribed successfully")


@router.get("/c/{channel_id}")
def get_channel_subscribers(
    channel_id: int,
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    subscribers = read_models.channel_subscribers(channel_id)
    return api_response(subscribers, "Subscribers fetched successfully")


@router.get("/u/{subscriber_id}")
def get_subscribed_channels(
    subscriber_id: int,
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    channels = read_models.subscribed_channels(subscriber_id)
    return api_response(channels, "Subscribed channels fetched successfully")
