import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from jose import JWTError
from pydantic import ValidationError
from sqlmodel import Session, select

from vidtube.auth.utils import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    decode_refresh_token,
    get_current_user,
    hash_password,
    issue_tokens,
    verify_password,
)
from vidtube.config import settings
from vidtube.db.models import User
from vidtube.db.session import get_session
from vidtube.dependencies import get_read_models
from vidtube.read_models import ReadModelBuilder
from vidtube.responses import api_response
from vidtube.storage import MediaUploader, get_uploader
from .models import AccountUpdate, PasswordChange, RefreshTokenRequest, UserCreate, UserLogin, UserView

logger = logging.getLogger("users")

router = APIRouter(tags=["users"])


def user_view(user: User) -> UserView:
    return UserView(
        id=user.id,
        username=user.username,
        email=user.email,
        fullname=user.fullname,
        avatar=user.avatar,
        cover_image=user.cover_image,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    message = error.get("msg", "Invalid input")
    return message.removeprefix("Value error, ")


def _set_auth_cookies(response: JSONResponse, access_token: str, refresh_token: str) -> JSONResponse:
    options = {"httponly": True, "secure": settings.COOKIE_SECURE, "samesite": "lax"}
    response.set_cookie(ACCESS_TOKEN_COOKIE, access_token, **options)
    response.set_cookie(REFRESH_TOKEN_COOKIE, refresh_token, **options)
    return response


@router.post("/register")
def register(
    username: str = Form(""),
    email: str = Form(""),
    fullname: str = Form(""),
    password: str = Form(""),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    db: Session = Depends(get_session),
    uploader: MediaUploader = Depends(get_uploader),
):
    if not all(field.strip() for field in (username, email, fullname, password)):
        raise HTTPException(status_code=400, detail="All fields are required")
    try:
        user = UserCreate(username=username, email=email, fullname=fullname, password=password)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=_first_error(e))

    existing = db.exec(
        select(User).where((User.username == user.username) | (User.email == user.email))
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail="User with username or email already exists")

    if avatar is None or not avatar.filename:
        raise HTTPException(status_code=400, detail="Avatar image is required")

    avatar_upload = uploader.upload(avatar, "avatars")
    cover_upload = uploader.upload(cover_image, "covers") if cover_image and cover_image.filename else None

    db_user = User(
        username=user.username,
        email=user.email,
        fullname=user.fullname,
        avatar=avatar_upload.url,
        cover_image=cover_upload.url if cover_upload else "",
        hashed_password=hash_password(user.password),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info(f"Registered user {db_user.id} ({db_user.username})")
    return api_response(user_view(db_user), "User registered successfully", 201)


@router.post("/login")
def login(credentials: UserLogin, db: Session = Depends(get_session)):
    if credentials.username:
        condition = User.username == credentials.username
    else:
        condition = User.email == credentials.email
    db_user = db.exec(select(User).where(condition)).first()
    if not db_user:
        raise HTTPException(status_code=404, detail="User does not exist")
    if not verify_password(credentials.password, db_user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid user credentials")

    access_token, refresh_token = issue_tokens(db_user, db)
    logger.info(f"User {db_user.id} logged in")
    response = api_response(
        {"user": user_view(db_user), "accessToken": access_token, "refreshToken": refresh_token},
        "User logged in successfully",
    )
    return _set_auth_cookies(response, access_token, refresh_token)


@router.post("/logout")
def logout(
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    current_user.refresh_token = None
    db.add(current_user)
    db.commit()
    logger.info(f"User {current_user.id} logged out")
    response = api_response({}, "User logged out successfully")
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    response.delete_cookie(REFRESH_TOKEN_COOKIE)
    return response


@router.post("/refresh-token")
def refresh_access_token(
    request: Request,
    payload: Optional[RefreshTokenRequest] = Body(None),
    db: Session = Depends(get_session),
):
    incoming = request.cookies.get(REFRESH_TOKEN_COOKIE) or (payload.refresh_token if payload else None)
    if not incoming:
        raise HTTPException(status_code=401, detail="Unauthorized request")
    try:
        user_id = int(decode_refresh_token(incoming).get("sub"))
    except (JWTError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    db_user = db.get(User, user_id)
    if db_user is None:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    if incoming != db_user.refresh_token:
        logger.warning(f"Stale refresh token presented for user {user_id}")
        raise HTTPException(status_code=401, detail="Refresh token is expired or used")

    access_token, refresh_token = issue_tokens(db_user, db)
    response = api_response(
        {"accessToken": access_token, "refreshToken": refresh_token},
        "Access token refreshed",
    )
    return _set_auth_cookies(response, access_token, refresh_token)


@router.post("/change-password")
def change_password(
    payload: PasswordChange,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if not verify_password(payload.old_password, current_user.hashed_password):
        raise HTTPException(status_code=400, detail="Invalid old password")
    current_user.hashed_password = hash_password(payload.new_password)
    current_user.updated_at = datetime.utcnow()
    db.add(current_user)
    db.commit()
    logger.info(f"User {current_user.id} changed password")
    return api_response({}, "Password changed successfully")


@router.get("/current-user")
def get_me(current_user: User = Depends(get_current_user)):
    return api_response(user_view(current_user), "Current user fetched successfully")


@router.patch("/update-account")
def update_account(
    payload: AccountUpdate,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if payload.email is not None and payload.email != current_user.email:
        taken = db.exec(select(User).where(User.email == payload.email)).first()
        if taken:
            raise HTTPException(status_code=409, detail="Email already registered")
        current_user.email = payload.email
    if payload.fullname is not None:
        current_user.fullname = payload.fullname
    current_user.updated_at = datetime.utcnow()
    db.add(current_user)
    db.commit()
    db.refresh(current_user)
    logger.info(f"User {current_user.id} updated account details")
    return api_response(user_view(current_user), "Account details updated successfully")


def _replace_image(
    field: str,
    folder: str,
    file: Optional[UploadFile],
    db: Session,
    current_user: User,
    uploader: MediaUploader,
) -> User:
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail=f"{folder[:-1].capitalize()} file is missing")
    upload = uploader.upload(file, folder)
    setattr(current_user, field, upload.url)
    current_user.updated_at = datetime.utcnow()
    db.add(current_user)
    db.commit()
    db.refresh(current_user)
    logger.info(f"User {current_user.id} updated {field}")
    return current_user


@router.patch("/avatar")
def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    uploader: MediaUploader = Depends(get_uploader),
):
    user = _replace_image("avatar", "avatars", avatar, db, current_user, uploader)
    return api_response(user_view(user), "Avatar updated successfully")


@router.patch("/cover-image")
def update_cover_image(
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    uploader: MediaUploader = Depends(get_uploader),
):
    user = _replace_image("cover_image", "covers", cover_image, db, current_user, uploader)
    return api_response(user_view(user), "Cover image updated successfully")


@router.get("/c/{username}")
def get_channel_profile(
    username: str,
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    profile = read_models.channel_profile(username, current_user.id)
    return api_response(profile, "User channel fetched successfully")


@router.get("/history")
def get_watch_history(
    read_models: ReadModelBuilder = Depends(get_read_models),
    current_user: User = Depends(get_current_user),
):
    history = read_models.watch_history(current_user.id)
    return api_response(history, "Watch history fetched successfully")
