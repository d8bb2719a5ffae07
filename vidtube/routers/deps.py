"""
FastAPI dependencies shared by the routers.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from ..config.settings import settings
from ..config.settings_loader import get_setting
from ..core.errors import FeatureDisabledError, InvalidTokenError
from ..db.database import get_db
from ..models.user_models import DBUser
from ..services.credential_store import CredentialStore
from ..services.session_manager import SessionManager
from ..utils import auth

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"

# Bearer header is optional, the access token cookie is accepted as well
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)


def get_credential_store(db: Session = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_session_manager(store: CredentialStore = Depends(get_credential_store)) -> SessionManager:
    return SessionManager(store)


async def get_current_user(
    request: Request,
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    store: CredentialStore = Depends(get_credential_store),
) -> DBUser:
    """
    Resolves the user from the access token cookie or the Authorization header.
    Raises HTTPException 401 if the token is missing, invalid or names an unknown user.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    token = request.cookies.get(ACCESS_TOKEN_COOKIE) or bearer_token
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized request",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = auth.verify_access_token(token)
    except InvalidTokenError as e:
        logger.info("Rejected access token: %s", e.message)
        raise credentials_exception from e

    user = store.find_by_id(claims["sub"])
    if user is None:
        logger.warning("User '%s' from access token not found in database.", claims["sub"])
        raise credentials_exception
    return user


def require_setting(name: str, message: str):
    """Dependency factory rejecting the request while the runtime switch is off."""
    def _check() -> None:
        if not get_setting(name):
            raise FeatureDisabledError(message)
    return _check
