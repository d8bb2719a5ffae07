"""
Endpoints for the current user's profile, channel profiles and stored media.
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from ..db.database import get_db
from ..models.user_models import DBUser
from ..schemas import user_schemas
from ..services import channel_service, user_service
from ..services.credential_store import CredentialStore
from ..services.media_host import LocalMediaHost, get_media_host
from ..utils.file_utils import discard_staged, stage_upload
from .deps import get_credential_store, get_current_user, require_setting

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={404: {"description": "Not found"}},
)

media_uploads_enabled = Depends(require_setting("MEDIA_UPLOAD_ENABLED", "Media uploads are currently disabled."))


@router.get("/me", response_model=user_schemas.User)
async def read_current_user(current_user: DBUser = Depends(get_current_user)):
    """
    Return the authenticated user's profile.
    """
    return current_user


@router.patch("/me", response_model=user_schemas.User)
async def update_account_details(
    user_update: user_schemas.UserUpdate,
    current_user: DBUser = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Update full name and email. Both are required.
    """
    return user_service.update_account_details(
        store, current_user.id, user_update.full_name, user_update.email
    )


@router.patch("/me/avatar", response_model=user_schemas.User, dependencies=[media_uploads_enabled])
async def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    current_user: DBUser = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
    media_host: LocalMediaHost = Depends(get_media_host),
):
    """
    Replace the authenticated user's avatar.
    """
    staged = None
    try:
        staged = await stage_upload(avatar, "avatar")
        return user_service.update_avatar(store, media_host, current_user.id, staged)
    finally:
        discard_staged(staged)


@router.patch("/me/cover-image", response_model=user_schemas.User, dependencies=[media_uploads_enabled])
async def update_cover_image(
    cover_image: Optional[UploadFile] = File(None),
    current_user: DBUser = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
    media_host: LocalMediaHost = Depends(get_media_host),
):
    """
    Replace the authenticated user's cover image.
    """
    staged = None
    try:
        staged = await stage_upload(cover_image, "cover")
        return user_service.update_cover_image(store, media_host, current_user.id, staged)
    finally:
        discard_staged(staged)


@router.get("/c/{username}", response_model=user_schemas.ChannelProfile)
async def read_channel_profile(
    username: str,
    current_user: DBUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Return a channel's profile with subscriber statistics for the requesting user.
    """
    return channel_service.get_channel_profile(db, username, viewer_id=current_user.id)


@router.get("/media/{filename}")
async def read_media_file(filename: str, media_host: LocalMediaHost = Depends(get_media_host)):
    """
    Serve a stored avatar or cover image.
    """
    file_path = media_host.resolve(filename)
    if file_path is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")

    return FileResponse(
        path=file_path,
        media_type=f"image/{file_path.suffix[1:].replace('jpg', 'jpeg')}",
        filename=filename
    )
