import logging

from fastapi import APIRouter, Depends, HTTPException

from vidtube.auth.utils import get_current_user
from vidtube.db.models import User
from vidtube.dependencies import get_read_models, get_write_model
from vidtube.read_models import ReadModelBuilder
from vidtube.responses import api_response
from vidtube.write_models import WriteModel
from .models import PlaylistCreate, PlaylistUpdate

# Set up logging
logger = logging.getLogger("playlists")

router = APIRouter(tags=["playlists"])


# Playlist CRUD Endpoints
@router.post("/")
def create_playlist(
    payload: PlaylistCreate,
    write_model: WriteModel = Depends(get_write_model),
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    """
    Create a new playlist.
    """
    playlist = write_model.create_playlist(current_user, payload.name, payload.description)
    return api_response(read_models.playlist_detail(playlist.id, current_user.id), "Playlist created successfully", 201)


@router.get("/user/{user_id}")
def get_user_playlists(
    user_id: int,
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    """
    Get all playlists of a user with their video counts.
    """
    playlists = read_models.user_playlists(user_id, current_user.id)
    return api_response(playlists, "User playlists fetched successfully")


@router.get("/{playlist_id}")
def get_playlist_details(
    playlist_id: int,
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    """
    Get detailed information about a playlist including its videos.
    """
    return api_response(read_models.playlist_detail(playlist_id, current_user.id), "Playlist fetched successfully")


@router.patch("/{playlist_id}")
def update_playlist(
    playlist_id: int,
    payload: PlaylistUpdate,
    write_model: WriteModel = Depends(get_write_model),
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    """
    Update playlist information.
    """
    if payload.name is None and payload.description is None:
        raise HTTPException(status_code=400, detail="Name or description is required")
    write_model.update_playlist(playlist_id, current_user, payload.name, payload.description)
    return api_response(read_models.playlist_detail(playlist_id, current_user.id), "Playlist updated successfully")


@router.delete("/{playlist_id}")
def delete_playlist(
    playlist_id: int,
    write_model: WriteModel = Depends(get_write_model),
    current_user: User = Depends(get_current_user),
):
    """
    Delete a playlist and all its items.
    """
    write_model.delete_playlist(playlist_id, current_user)
    return api_response({"id": playlist_id}, "Playlist deleted successfully")


# Playlist Item Management
@router.patch("/add/{video_id}/{playlist_id}")
def add_video_to_playlist(
    video_id: int,
    playlist_id: int,
    write_model: WriteModel = Depends(get_write_model),
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    """
    Add a video to a playlist. Adding a video twice is a no-op.
    """
    write_model.add_video_to_playlist(playlist_id, video_id, current_user)
    return api_response(read_models.playlist_detail(playlist_id, current_user.id), "Video added to playlist successfully")


@router.patch("/remove/{video_id}/{playlist_id}")
def remove_video_from_playlist(
    video_id: int,
    playlist_id: int,
    write_model: WriteModel = Depends(get_write_model),
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    """
    Remove a video from a playlist.
    """
    write_model.remove_video_from_playlist(playlist_id, video_id, current_user)
    return api_response(read_models.playlist_detail(playlist_id, current_user.id), "Video removed from playlist successfully")
