"""
Schemas for login, token refresh and token responses.
"""
from typing import Optional
from pydantic import BaseModel, field_validator

from .user_schemas import User


class TokenPair(BaseModel):
    """Schema for an access/refresh token pair."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    message: str = "Access token refreshed"


class LoginResponse(TokenPair):
    """Tokens plus the logged in user."""
    user: User
    message: str = "User logged in successfully"


class TokenRefreshRequest(BaseModel):
    """Schema for refresh token request; the cookie takes precedence."""
    refresh_token: Optional[str] = None


class LoginForm(BaseModel):
    """Schema for user login form data. Username or email, checked by the session manager."""
    username: Optional[str] = None
    email: Optional[str] = None
    password: str

    @field_validator('username', 'email')
    @classmethod
    def blank_as_missing(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()
