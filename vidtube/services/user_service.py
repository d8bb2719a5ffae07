"""
Registration and profile editing.
"""
import logging
from pathlib import Path
from typing import Optional, Union

from ..core.errors import (ConflictError, MediaUploadError, NotFoundError, ServiceError,
                           ValidationFailedError)
from ..models.user_models import DBUser
from ..utils import auth
from .credential_store import CredentialStore
from .media_host import LocalMediaHost

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def register_user(
    store: CredentialStore,
    media_host: LocalMediaHost,
    *,
    username: Optional[str],
    email: Optional[str],
    full_name: Optional[str],
    password: Optional[str],
    avatar_path: Optional[PathLike],
    cover_image_path: Optional[PathLike] = None,
) -> DBUser:
    """
    Creates a user after uploading the avatar (required) and cover image (optional).

    Existence is checked before anything is uploaded. The returned user holds
    no refresh token; the caller logs in separately.
    """
    if not all(value and value.strip() for value in (username, email, full_name, password)):
        raise ValidationFailedError("All fields are required")

    if store.find_by_identifier(username=username, email=email) is not None:
        raise ConflictError("User with email or username already exists")

    if not avatar_path:
        raise ValidationFailedError("Avatar file is required")

    avatar = media_host.upload(avatar_path)
    if avatar is None:
        raise ValidationFailedError("Avatar file is required")
    cover_image = media_host.upload(cover_image_path)

    try:
        user = store.create(
            username=username,
            email=email.strip(),
            full_name=full_name.strip(),
            hashed_password=auth.get_password_hash(password),
            avatar=avatar.url,
            cover_image=cover_image.url if cover_image else "",
        )
    except ServiceError:
        # the user row was not written, so nothing references the uploads
        for uploaded in (avatar, cover_image):
            if uploaded is not None:
                media_host.delete(uploaded.public_id)
        raise
    logger.info("Registered user '%s'.", user.username)
    return user


def _load(store: CredentialStore, user_id: str) -> DBUser:
    user = store.find_by_id(user_id)
    if user is None:
        raise NotFoundError()
    return user


def update_account_details(
    store: CredentialStore,
    user_id: str,
    full_name: Optional[str],
    email: Optional[str],
) -> DBUser:
    if not (full_name and full_name.strip()) or not (email and email.strip()):
        raise ValidationFailedError("All fields are required")

    user = _load(store, user_id)
    owner = store.find_by_identifier(email=email)
    if owner is not None and owner.id != user.id:
        raise ConflictError("Email already registered")

    user.full_name = full_name.strip()
    user.email = email.strip()
    store.save(user)
    return user


def _replace_image(
    store: CredentialStore,
    media_host: LocalMediaHost,
    user_id: str,
    local_path: Optional[PathLike],
    field: str,
    label: str,
) -> DBUser:
    if not local_path:
        raise ValidationFailedError(f"{label} file is missing")

    user = _load(store, user_id)
    uploaded = media_host.upload(local_path)
    if uploaded is None:
        raise MediaUploadError(f"Error while updating {label.lower()}")

    setattr(user, field, uploaded.url)
    store.save(user)
    logger.info("Updated %s for user '%s'.", field, user.username)
    return user


def update_avatar(store: CredentialStore, media_host: LocalMediaHost, user_id: str,
                  local_path: Optional[PathLike]) -> DBUser:
    return _replace_image(store, media_host, user_id, local_path, "avatar", "Avatar")


def update_cover_image(store: CredentialStore, media_host: LocalMediaHost, user_id: str,
                       local_path: Optional[PathLike]) -> DBUser:
    return _replace_image(store, media_host, user_id, local_path, "cover_image", "Cover image")
