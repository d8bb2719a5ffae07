"""
Schemas for user management, including creation and updates with password complexity validation.
"""
import re
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from ..config.settings import settings


def password_policy_errors(password: str) -> List[str]:
    """Returns the complexity rules the password violates."""
    errors: List[str] = []
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        errors.append(f"must be at least {settings.MIN_PASSWORD_LENGTH} characters long")
    if settings.REQUIRE_UPPERCASE and not re.search(r"[A-Z]", password):
        errors.append("must contain at least one uppercase letter")
    if settings.REQUIRE_LOWERCASE and not re.search(r"[a-z]", password):
        errors.append("must contain at least one lowercase letter")
    if settings.REQUIRE_DIGIT and not re.search(r"\d", password):
        errors.append("must contain at least one digit")
    if settings.REQUIRE_SPECIAL_CHAR and not re.search(settings.SPECIAL_CHARACTERS_REGEX_PATTERN, password):
        errors.append("must contain at least one special character (e.g., !@#$%)")
    return errors


class UserBase(BaseModel):
    """Base schema for user data."""
    username: str
    full_name: str


class User(UserBase):
    """Public projection of a user; the password hash and refresh token are never included."""
    id: str
    email: str
    avatar: str
    cover_image: Optional[str] = ""
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserCreate(UserBase):
    """Schema for creating a new user."""
    email: EmailStr
    password: str = Field(
        ...,
        description=f"Password must be at least {settings.MIN_PASSWORD_LENGTH} "
                    "characters long and meet complexity requirements."
    )

    @field_validator('username', 'full_name')
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator('password')
    @classmethod
    def password_complexity_checks(cls, v: str) -> str:
        """Validates the password for complexity requirements."""
        errors = password_policy_errors(v)
        if errors:
            raise ValueError(f"Password does not meet complexity requirements: {'; '.join(errors)}.")
        return v


class UserUpdate(BaseModel):
    """Account details editable by the user; both fields are required."""
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None


class PasswordChange(BaseModel):
    old_password: str
    new_password: str

    @field_validator('new_password')
    @classmethod
    def new_password_complexity_checks(cls, v: str) -> str:
        errors = password_policy_errors(v)
        if errors:
            raise ValueError(f"New password does not meet complexity requirements: {'; '.join(errors)}.")
        return v


class ChannelProfile(BaseModel):
    """A channel's public fields with subscription statistics."""
    full_name: str
    username: str
    email: str
    avatar: str
    cover_image: str = ""
    subscribers_count: int = Field(..., description="Users subscribed to this channel")
    channels_subscribed_to_count: int = Field(..., description="Channels this user subscribes to")
    is_subscribed: bool = Field(..., description="Whether the requesting user subscribes to this channel")


class Message(BaseModel):
    message: str
