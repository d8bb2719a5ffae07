"""
Service-layer errors and their HTTP mapping.

Services raise these; routers never translate them by hand. The exception
handler installed by ``register_exception_handlers`` renders every
``ServiceError`` as ``{"detail": ..., "error_code": ...}`` with the class's
status code.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for errors surfaced to the transport layer."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "validation_error"
    default_message: str = "Request could not be processed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailedError(ServiceError):
    """Request data is incomplete or violates a model rule (400)."""
    error_code = "validation_error"
    default_message = "All fields are required"


class MissingCredentialError(ServiceError):
    """Neither username nor email was supplied (400)."""
    error_code = "missing_credential"
    default_message = "Username or email is required"


class MediaUploadError(ServiceError):
    """The media host rejected or failed an upload (400)."""
    error_code = "media_upload_failed"
    default_message = "Error while uploading file"


class UnauthorizedError(ServiceError):
    """No token was presented (401)."""
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "unauthorized"
    default_message = "Unauthorized request"


class InvalidCredentialError(ServiceError):
    """Password did not match (401)."""
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "invalid_credential"
    default_message = "Invalid login credentials"


class InvalidTokenError(ServiceError):
    """Token is malformed, badly signed, expired or names an unknown user (401)."""
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "invalid_token"
    default_message = "Invalid refresh token"


class InvalidSignatureError(InvalidTokenError):
    default_message = "Token signature is invalid"


class TokenExpiredError(InvalidTokenError):
    default_message = "Token has expired"


class TokenReuseDetectedError(ServiceError):
    """Presented refresh token is not the one on record (401)."""
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "token_reuse_detected"
    default_message = "Refresh token is expired or used"


class FeatureDisabledError(ServiceError):
    """A runtime switch turned the endpoint off (403)."""
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "feature_disabled"
    default_message = "This feature is currently disabled"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "not_found"
    default_message = "User not found"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "conflict"
    default_message = "User with email or username already exists"


class StoreFailureError(ServiceError):
    """The credential store failed; the original exception is chained as __cause__."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "store_failure"
    default_message = "Something went wrong while accessing the user store"


def register_exception_handlers(app: FastAPI) -> None:
    """Install the ServiceError handler on the app."""

    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError):
        log_fn = logger.error if exc.status_code >= 500 else logger.warning
        log_fn(
            "%s %s -> %s %s: %s",
            request.method, request.url.path, exc.status_code, exc.error_code, exc.message,
            exc_info=exc.__cause__ if exc.status_code >= 500 else None,
        )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error_code": exc.error_code},
            headers=headers,
        )
