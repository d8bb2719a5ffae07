"""
Subscription model: a user (subscriber) following a channel (another user).
"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from ..db.database import Base
from .user_models import _utcnow


class DBSubscription(Base):
    """SQLAlchemy model for the subscriptions table."""
    __tablename__ = "subscriptions"
    __table_args__ = (UniqueConstraint("subscriber_id", "channel_id", name="uq_subscriber_channel"),)

    id = Column(Integer, primary_key=True, index=True)
    subscriber_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    channel_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
