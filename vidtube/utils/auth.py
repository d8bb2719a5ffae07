import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from ..config.settings import settings # Use centralized settings
from ..core.errors import InvalidSignatureError, TokenExpiredError

logger = logging.getLogger(__name__)

# Password-Hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verifies a plain password against a hashed password.
    A malformed or missing hash counts as a mismatch.
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        logger.warning("Stored password hash could not be identified.")
        return False


def get_password_hash(password: str) -> str:
    """Hashes a plain password."""
    return pwd_context.hash(password)


def _encode(
    claims: Dict[str, Any],
    secret: str,
    token_type: str,
    lifetime: timedelta,
) -> str:
    now = datetime.now(timezone.utc)
    to_encode = claims.copy()
    # jti keeps two tokens minted in the same second distinct
    to_encode.update({
        "iat": now,
        "exp": now + lifetime,
        "type": token_type,
        "jti": uuid.uuid4().hex,
    })
    return jwt.encode(to_encode, secret, algorithm=settings.ALGORITHM)


def _decode(token: str, secret: str, expected_type: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError as e:
        logger.debug("Expired %s token presented.", expected_type)
        raise TokenExpiredError() from e
    except JWTError as e:
        logger.debug("Undecodable %s token: %s", expected_type, e)
        raise InvalidSignatureError() from e

    if payload.get("type") != expected_type:
        logger.warning("Invalid token type '%s'. Expected '%s'.", payload.get("type"), expected_type)
        raise InvalidSignatureError(f"Expected a token of type '{expected_type}'")
    if not payload.get("sub"):
        logger.warning("Subject missing from %s token payload.", expected_type)
        raise InvalidSignatureError("Token has no subject")
    return payload


def create_access_token(
    user_id: str,
    extra_claims: Optional[Dict[str, Any]] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Creates a new access token for user_id."""
    claims = dict(extra_claims or {})
    claims["sub"] = str(user_id)
    lifetime = expires_delta if expires_delta is not None else timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(claims, settings.ACCESS_TOKEN_SECRET, ACCESS_TOKEN_TYPE, lifetime)


def create_refresh_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Creates a new refresh token for user_id."""
    lifetime = expires_delta if expires_delta is not None else timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES)
    return _encode({"sub": str(user_id)}, settings.REFRESH_TOKEN_SECRET, REFRESH_TOKEN_TYPE, lifetime)


def verify_access_token(token: str) -> Dict[str, Any]:
    """
    Verifies an access token and returns its claims.
    Raises TokenExpiredError or InvalidSignatureError.
    """
    return _decode(token, settings.ACCESS_TOKEN_SECRET, ACCESS_TOKEN_TYPE)


def verify_refresh_token(token: str) -> str:
    """
    Verifies a refresh token and returns the user id it was issued for.
    Raises TokenExpiredError or InvalidSignatureError.
    """
    return str(_decode(token, settings.REFRESH_TOKEN_SECRET, REFRESH_TOKEN_TYPE)["sub"])
