"""
Endpoints for registration and the session lifecycle.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Request, Response, UploadFile, status
from pydantic import ValidationError

from ..config.settings import settings
from ..models.user_models import DBUser
from ..schemas import token as token_schema
from ..schemas import user_schemas
from ..services import user_service
from ..services.credential_store import CredentialStore
from ..services.media_host import LocalMediaHost, get_media_host
from ..services.session_manager import SessionManager, TokenPair
from ..utils.file_utils import discard_staged, stage_upload
from .deps import (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, get_credential_store,
                   get_current_user, get_session_manager, require_setting)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)


def _cookie_options() -> dict:
    return {"httponly": True, "secure": settings.COOKIE_SECURE, "samesite": settings.COOKIE_SAMESITE}


def _set_token_cookies(response: Response, tokens: TokenPair) -> None:
    options = _cookie_options()
    response.set_cookie(ACCESS_TOKEN_COOKIE, tokens.access_token,
                        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60, **options)
    response.set_cookie(REFRESH_TOKEN_COOKIE, tokens.refresh_token,
                        max_age=settings.REFRESH_TOKEN_EXPIRE_MINUTES * 60, **options)


@router.post(
    "/register",
    response_model=user_schemas.User,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_setting("REGISTER_ENDPOINT_ENABLED", "User registration is currently disabled."))],
)
async def register_user(
    username: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    full_name: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None),
    store: CredentialStore = Depends(get_credential_store),
    media_host: LocalMediaHost = Depends(get_media_host),
):
    """
    Register a new user with an avatar and an optional cover image.
    """
    if all([username, email, full_name, password]):
        try:
            user_schemas.UserCreate(username=username, email=email, full_name=full_name, password=password)
        except ValidationError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=e.errors(include_url=False, include_context=False, include_input=False),
            ) from e

    avatar_path = cover_image_path = None
    try:
        avatar_path = await stage_upload(avatar, "avatar")
        cover_image_path = await stage_upload(cover_image, "cover")
        return user_service.register_user(
            store,
            media_host,
            username=username,
            email=email,
            full_name=full_name,
            password=password,
            avatar_path=avatar_path,
            cover_image_path=cover_image_path,
        )
    finally:
        discard_staged(avatar_path, cover_image_path)


@router.post("/login", response_model=token_schema.LoginResponse)
async def login(
    form_data: token_schema.LoginForm,
    response: Response,
    session_manager: SessionManager = Depends(get_session_manager),
):
    """
    Authenticate by username or email and return an access/refresh token pair.
    Tokens are also set as HTTP-only cookies.
    """
    result = session_manager.login(form_data.password, username=form_data.username, email=form_data.email)
    _set_token_cookies(response, result.tokens)
    return token_schema.LoginResponse(
        user=user_schemas.User.model_validate(result.user),
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
    )


@router.post("/refresh-token", response_model=token_schema.TokenPair)
async def refresh_access_token(
    request: Request,
    response: Response,
    payload: Optional[token_schema.TokenRefreshRequest] = Body(None),
    session_manager: SessionManager = Depends(get_session_manager),
):
    """
    Exchange a refresh token (cookie or body) for a new pair. The presented token is invalidated.
    """
    presented = request.cookies.get(REFRESH_TOKEN_COOKIE) or (payload.refresh_token if payload else None)
    tokens = session_manager.refresh(presented)
    _set_token_cookies(response, tokens)
    return token_schema.TokenPair(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


@router.post("/logout", response_model=user_schemas.Message)
async def logout(
    response: Response,
    current_user: DBUser = Depends(get_current_user),
    session_manager: SessionManager = Depends(get_session_manager),
):
    """
    Invalidate the current refresh token and clear the token cookies.
    """
    session_manager.logout(current_user.id)
    options = _cookie_options()
    response.delete_cookie(ACCESS_TOKEN_COOKIE, **options)
    response.delete_cookie(REFRESH_TOKEN_COOKIE, **options)
    return {"message": "User logged out successfully"}


@router.post("/change-password", response_model=user_schemas.Message)
async def change_password(
    payload: user_schemas.PasswordChange,
    current_user: DBUser = Depends(get_current_user),
    session_manager: SessionManager = Depends(get_session_manager),
):
    """
    Change the current user's password. Existing sessions stay valid.
    """
    session_manager.change_password(current_user.id, payload.old_password, payload.new_password)
    return {"message": "Password changed successfully"}
