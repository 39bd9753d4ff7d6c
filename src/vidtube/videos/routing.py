import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from vidtube.auth.utils import get_current_user
from vidtube.db.models import User
from vidtube.dependencies import get_read_models, get_write_model, page_params
from vidtube.read_models import PageRequest, ReadModelBuilder
from vidtube.responses import api_response
from vidtube.storage import MediaUploader, get_uploader
from vidtube.write_models import WriteModel

logger = logging.getLogger("videos")

router = APIRouter(tags=["videos"])


@router.get("/")
def get_all_videos(
    user_id: Optional[int] = Query(None, alias="userId"),
    query: Optional[str] = None,
    page: PageRequest = Depends(page_params),
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    """
    List published videos, optionally filtered by owner and a title/description search.
    - Query params: userId, query, page, limit, sortBy, sortType
    - Owners also see their own unpublished videos when filtering by themselves.
    """
    videos = read_models.video_feed(
        page,
        owner_id=user_id,
        query=query,
        include_unpublished=user_id is not None and user_id == current_user.id,
    )
    logger.info(f"Listed {len(videos)} videos for user {current_user.id}")
    return api_response(videos, "Videos fetched successfully")


@router.post("/")
def publish_video(
    title: str = Form(""),
    description: str = Form(""),
    video_file: Optional[UploadFile] = File(None, alias="videoFile"),
    thumbnail: Optional[UploadFile] = File(None),
    write_model: WriteModel = Depends(get_write_model),
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
    uploader: MediaUploader = Depends(get_uploader),
):
    if not title.strip() or not description.strip():
        raise HTTPException(status_code=400, detail="Video title and description are required")
    if video_file is None or not video_file.filename:
        raise HTTPException(status_code=400, detail="Video file is required")

    # No rollback of earlier uploads if a later one fails.
    thumbnail_upload = uploader.upload(thumbnail, "thumbnails") if thumbnail and thumbnail.filename else None
    video_upload = uploader.upload(video_file, "videos")

    video = write_model.publish_video(current_user, title, description, video_upload, thumbnail_upload)
    return api_response(read_models.video_detail(video.id), "Video uploaded successfully", 201)


@router.get("/{video_id}")
def get_video_by_id(
    video_id: int,
    write_model: WriteModel = Depends(get_write_model),
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    """Fetch a video; counts a view and records it in the viewer's watch history."""
    video = write_model.get_video(video_id, current_user)
    write_model.record_view(video, current_user)
    return api_response(read_models.video_detail(video.id), "Video fetched successfully")


@router.patch("/{video_id}")
def update_video(
    video_id: int,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    write_model: WriteModel = Depends(get_write_model),
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
    uploader: MediaUploader = Depends(get_uploader),
):
    if title is None and description is None and (thumbnail is None or not thumbnail.filename):
        raise HTTPException(status_code=400, detail="Nothing to update")
    # Ownership is checked before anything is uploaded.
    write_model.owned_video(video_id, current_user)
    thumbnail_upload = uploader.upload(thumbnail, "thumbnails") if thumbnail and thumbnail.filename else None
    write_model.update_video(video_id, current_user, title, description, thumbnail_upload)
    return api_response(read_models.video_detail(video_id), "Video updated successfully")


@router.delete("/{video_id}")
def delete_video(
    video_id: int,
    write_model: WriteModel = Depends(get_write_model),
    current_user: User = Depends(get_current_user),
):
    write_model.delete_video(video_id, current_user)
    return api_response({"id": video_id}, "Video deleted successfully")


@router.patch("/toggle/publish/{video_id}")
def toggle_publish_status(
    video_id: int,
    write_model: WriteModel = Depends(get_write_model),
    current_user: User = Depends(get_current_user),
):
    video = write_model.toggle_publish(video_id, current_user)
    return api_response(
        {"id": video.id, "isPublished": video.is_published},
        "Video publish status changed",
    )
