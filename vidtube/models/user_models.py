"""
User model for SQLAlchemy ORM.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text
from ..db.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DBUser(Base):
    """SQLAlchemy model for the User table."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(128), unique=True, index=True, nullable=False)
    email = Column(String(128), unique=True, index=True, nullable=False)
    full_name = Column(String(128), nullable=False)
    hashed_password = Column(String(128), nullable=False)
    avatar = Column(String(512), nullable=False)
    cover_image = Column(String(512), nullable=True, default="")
    # Only the latest issued refresh token is valid; None after logout
    refresh_token = Column(Text, nullable=True, default=None)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<DBUser id={self.id} username={self.username}>"
