import logging

from fastapi import APIRouter, Depends

from vidtube.auth.utils import get_current_user
from vidtube.db.models import User
from vidtube.dependencies import get_read_models, page_params
from vidtube.read_models import PageRequest, ReadModelBuilder
from vidtube.responses import api_response

logger = logging.getLogger("dashboard")

router = APIRouter(tags=["dashboard"])


@router.get("/stats")
def get_channel_stats(
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    """
    Totals for the current user's channel.
    - Returns: totalVideos, totalViews, totalLikes, totalSubscribers (all default to 0)
    """
    stats = read_models.channel_stats(current_user.id)
    logger.info(f"Computed channel stats for user {current_user.id}")
    return api_response(stats, "Channel stats fetched")


@router.get("/videos")
def get_channel_videos(
    page: PageRequest = Depends(page_params),
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    """All of the current user's videos, published or not."""
    videos = read_models.video_feed(page, owner_id=current_user.id, include_unpublished=True)
    return api_response(videos, "Channel videos fetched successfully")
