"""
HTTP routes for the wellness API.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from wellness.auth import (
    UNAUTHORIZED_MESSAGE,
    clear_auth_cookie,
    require_user_email,
    set_auth_cookie,
)
from wellness.config import Settings
from wellness.db import CatalogFilter, DbClient, MediaKind, MediaRecord, UserRecord
from wellness.dependencies import (
    get_app_settings,
    get_db_client,
    get_image_bucket,
    get_spotify_client,
    get_video_bucket,
)
from wellness.media import VIDEO_MEDIA_TYPE, media_response
from wellness.schemas import (
    ImageResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ReminderRequest,
    SignupRequest,
    SignupResponse,
    SpotifyLoginRequest,
    SpotifyLoginResponse,
    SpotifyRefreshRequest,
    SpotifyRefreshResponse,
    UserResponse,
    VideoResponse,
)
from wellness.security import hash_password, verify_password
from wellness.spotify import SpotifyTokenClient
from wellness.storage import BucketClient

logger = logging.getLogger(__name__)

router = APIRouter()
spotify_router = APIRouter(tags=["spotify"])

INVALID_CREDENTIALS = "Email and password combination wrong!"


def _query_value(value: Optional[str]) -> Optional[str]:
    # The client serialises unset filters as the literal string "undefined".
    if value is None or value == "undefined":
        return None
    return value


def _user_response(user: UserRecord) -> UserResponse:
    return UserResponse.model_validate(user.as_dict())


def _current_user(db: DbClient, email: str) -> UserRecord:
    user = db.get_user(email)
    if not user:
        # Token outlived its account.
        raise HTTPException(status_code=401, detail=UNAUTHORIZED_MESSAGE)
    return user


def _catalog_filter(
    db: DbClient,
    email: str,
    kind: MediaKind,
    level: Optional[str],
    category: Optional[str],
    favorites: Optional[str],
) -> CatalogFilter:
    ids = None
    if _query_value(favorites) is not None:
        ids = tuple(_current_user(db, email).favorites(kind))
    return CatalogFilter(
        level=_query_value(level), category=_query_value(category), ids=ids
    )


def _toggle_favorite(
    db: DbClient, email: str, kind: MediaKind, media_id: str
) -> UserResponse:
    user = _current_user(db, email)
    if media_id not in user.favorites(kind) and db.get_media(kind, media_id) is None:
        raise HTTPException(status_code=404, detail=f"{kind.value.capitalize()} not found")
    updated = db.toggle_favorite(email, kind, media_id)
    if updated is None:
        raise HTTPException(status_code=401, detail=UNAUTHORIZED_MESSAGE)
    logger.info(
        "Toggled %s favorite %s for %s (now %s)",
        kind.value,
        media_id,
        email,
        "on" if media_id in updated.favorites(kind) else "off",
    )
    return _user_response(updated)


def _require_media(record: Optional[MediaRecord], label: str) -> MediaRecord:
    if record is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return record


# ========================
# Account


@router.post("/signup", response_model=SignupResponse)
def signup(
    payload: SignupRequest,
    response: Response,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_app_settings),
):
    """
    Create an account and log it in. A taken email raises DuplicateEmailError,
    which the app maps to 409.
    """
    user = db.create_user(
        UserRecord(
            email=payload.email,
            name=payload.name,
            surname=payload.surname,
            password_hash=hash_password(payload.password),
        )
    )
    set_auth_cookie(response, user.email, settings)
    logger.info("Created account %s", user.user_id)
    return SignupResponse(data={"newUser": _user_response(user)})


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    response: Response,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_app_settings),
):
    user = db.get_user(payload.email, with_password=True)
    password_hash = user.password_hash if user else None
    if not verify_password(payload.password, password_hash):
        logger.info("Rejected login attempt")
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)

    token = set_auth_cookie(response, user.email, settings)
    return LoginResponse(data={"token": token}, user=_user_response(user))


@router.get("/logout", response_model=MessageResponse)
def logout(response: Response, settings: Settings = Depends(get_app_settings)):
    clear_auth_cookie(response, settings)
    return MessageResponse(message="Logged out successfully")


@router.get("/verified", response_model=UserResponse)
def verified(
    email: str = Depends(require_user_email),
    db: DbClient = Depends(get_db_client),
):
    return _user_response(_current_user(db, email))


@router.put("/reminder", response_model=UserResponse)
def update_reminder(
    payload: ReminderRequest,
    email: str = Depends(require_user_email),
    db: DbClient = Depends(get_db_client),
):
    updated = db.set_reminder(email, {"time": payload.time, "days": payload.days})
    if updated is None:
        raise HTTPException(status_code=401, detail=UNAUTHORIZED_MESSAGE)
    return _user_response(updated)


# ========================
# Yoga videos


@router.get("/yogavideos", response_model=list[VideoResponse])
@router.get("/yogavideos/", response_model=list[VideoResponse], include_in_schema=False)
def list_videos(
    level: Optional[str] = None,
    category: Optional[str] = None,
    favVideos: Optional[str] = None,
    email: str = Depends(require_user_email),
    db: DbClient = Depends(get_db_client),
):
    filters = _catalog_filter(db, email, MediaKind.VIDEO, level, category, favVideos)
    return [
        VideoResponse.model_validate(record.as_dict())
        for record in db.list_media(MediaKind.VIDEO, filters)
    ]


@router.get("/yogavideos/{video_id}", response_model=VideoResponse)
def get_video(
    video_id: str,
    email: str = Depends(require_user_email),
    db: DbClient = Depends(get_db_client),
):
    video = _require_media(db.get_media(MediaKind.VIDEO, video_id), "Video")
    return VideoResponse.model_validate(video.as_dict())


@router.get("/thumbnail/{thumbnail}")
def get_thumbnail(
    thumbnail: str,
    request: Request,
    db: DbClient = Depends(get_db_client),
    bucket: BucketClient = Depends(get_video_bucket),
):
    video = _require_media(db.find_video_by_thumbnail(thumbnail), "Thumbnail")
    return media_response(
        bucket, video.thumbnail, range_header=request.headers.get("range")
    )


@router.get("/videostream/{filename}")
def stream_video(
    filename: str,
    request: Request,
    db: DbClient = Depends(get_db_client),
    bucket: BucketClient = Depends(get_video_bucket),
):
    video = _require_media(db.find_media_by_filename(MediaKind.VIDEO, filename), "Video")
    return media_response(
        bucket,
        video.filename,
        range_header=request.headers.get("range"),
        declared_size=video.filesize,
        media_type=VIDEO_MEDIA_TYPE,
    )


@router.put("/favouriseVideo/{video_id}", response_model=UserResponse)
def favourise_video(
    video_id: str,
    email: str = Depends(require_user_email),
    db: DbClient = Depends(get_db_client),
):
    return _toggle_favorite(db, email, MediaKind.VIDEO, video_id)


# ========================
# Meditation images


@router.get("/meditationimages", response_model=list[ImageResponse])
@router.get(
    "/meditationimages/", response_model=list[ImageResponse], include_in_schema=False
)
def list_images(
    level: Optional[str] = None,
    category: Optional[str] = None,
    favMeditations: Optional[str] = None,
    email: str = Depends(require_user_email),
    db: DbClient = Depends(get_db_client),
):
    filters = _catalog_filter(
        db, email, MediaKind.IMAGE, level, category, favMeditations
    )
    return [
        ImageResponse.model_validate(record.as_dict())
        for record in db.list_media(MediaKind.IMAGE, filters)
    ]


@router.get("/image/{filename}")
def get_image(
    filename: str,
    request: Request,
    db: DbClient = Depends(get_db_client),
    bucket: BucketClient = Depends(get_image_bucket),
):
    image = _require_media(db.find_media_by_filename(MediaKind.IMAGE, filename), "Image")
    return media_response(
        bucket,
        image.filename,
        range_header=request.headers.get("range"),
        declared_size=image.filesize,
    )


@router.put("/favouriseMeditation/{image_id}", response_model=UserResponse)
def favourise_meditation(
    image_id: str,
    email: str = Depends(require_user_email),
    db: DbClient = Depends(get_db_client),
):
    return _toggle_favorite(db, email, MediaKind.IMAGE, image_id)


# ========================
# Spotify


def _require_spotify(client: Optional[SpotifyTokenClient]) -> SpotifyTokenClient:
    if client is None:
        raise HTTPException(status_code=503, detail="Music service is not configured")
    return client


@spotify_router.post("/login-spotify", response_model=SpotifyLoginResponse)
def login_spotify(
    payload: SpotifyLoginRequest,
    client: Optional[SpotifyTokenClient] = Depends(get_spotify_client),
):
    tokens = _require_spotify(client).exchange_code(payload.code)
    return SpotifyLoginResponse(
        accessToken=tokens["access_token"],
        refreshToken=tokens.get("refresh_token"),
        expiresIn=int(tokens.get("expires_in", 0)),
    )


@spotify_router.post("/refresh", response_model=SpotifyRefreshResponse)
def refresh_spotify(
    payload: SpotifyRefreshRequest,
    email: str = Depends(require_user_email),
    client: Optional[SpotifyTokenClient] = Depends(get_spotify_client),
):
    tokens = _require_spotify(client).refresh(payload.refreshToken)
    return SpotifyRefreshResponse(
        accessToken=tokens["access_token"],
        expiresIn=int(tokens.get("expires_in", 0)),
    )
