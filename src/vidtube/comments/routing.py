import logging

from fastapi import APIRouter, Depends

from vidtube.auth.utils import get_current_user
from vidtube.db.models import User
from vidtube.dependencies import get_read_models, get_write_model, page_params
from vidtube.read_models import PageRequest, ReadModelBuilder, comment_view
from vidtube.responses import api_response
from vidtube.write_models import WriteModel
from .models import CommentContent

logger = logging.getLogger("comments")

router = APIRouter(tags=["comments"])


@router.get("/{video_id}")
def get_video_comments(
    video_id: int,
    page: PageRequest = Depends(page_params),
    write_model: WriteModel = Depends(get_write_model),
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    """
    Get comments for a video, newest first by default.
    - Query params: page, limit, sortBy (createdAt|updatedAt), sortType (asc|desc)
    """
    write_model.get_video(video_id, current_user)
    comments = read_models.comment_feed(video_id, page)
    return api_response(comments, "Video comments fetched successfully")


@router.post("/{video_id}")
def add_comment(
    video_id: int,
    payload: CommentContent,
    write_model: WriteModel = Depends(get_write_model),
    current_user: User = Depends(get_current_user),
):
    comment = write_model.add_comment(video_id, current_user, payload.content)
    return api_response(comment_view(comment, current_user), "Comment added successfully", 201)


@router.patch("/c/{comment_id}")
def update_comment(
    comment_id: int,
    payload: CommentContent,
    write_model: WriteModel = Depends(get_write_model),
    current_user: User = Depends(get_current_user),
):
    """
    Update a comment (only by the comment author).
    """
    comment = write_model.update_comment(comment_id, current_user, payload.content)
    return api_response(comment_view(comment, current_user), "Comment updated successfully")


@router.delete("/c/{comment_id}")
def delete_comment(
    comment_id: int,
    write_model: WriteModel = Depends(get_write_model),
    current_user: User = Depends(get_current_user),
):
    """
    Delete a comment (only by the comment author).
    """
    write_model.delete_comment(comment_id, current_user)
    return api_response({"id": comment_id}, "Comment deleted successfully")
