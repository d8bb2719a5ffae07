"""
Channel profile: a user's public fields plus subscription statistics,
computed in a single statement.
"""
from typing import Optional

from sqlalchemy import false, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError, StoreFailureError, ValidationFailedError
from ..models.subscription_models import DBSubscription
from ..models.user_models import DBUser
from ..schemas.user_schemas import ChannelProfile


def _channel_profile_statement(username: str, viewer_id: Optional[str]):
    subscribers_count = (
        select(func.count(DBSubscription.id))
        .where(DBSubscription.channel_id == DBUser.id)
        .correlate(DBUser)
        .scalar_subquery()
    )
    subscribed_to_count = (
        select(func.count(DBSubscription.id))
        .where(DBSubscription.subscriber_id == DBUser.id)
        .correlate(DBUser)
        .scalar_subquery()
    )
    if viewer_id is None:
        is_subscribed = false()
    else:
        is_subscribed = (
            select(DBSubscription.id)
            .where(DBSubscription.channel_id == DBUser.id, DBSubscription.subscriber_id == viewer_id)
            .correlate(DBUser)
            .exists()
        )

    return select(
        DBUser.full_name,
        DBUser.username,
        DBUser.email,
        DBUser.avatar,
        DBUser.cover_image,
        subscribers_count.label("subscribers_count"),
        subscribed_to_count.label("channels_subscribed_to_count"),
        is_subscribed.label("is_subscribed"),
    ).where(DBUser.username == username)


def get_channel_profile(db: Session, username: Optional[str], viewer_id: Optional[str] = None) -> ChannelProfile:
    if not username or not username.strip():
        raise ValidationFailedError("username is missing")

    statement = _channel_profile_statement(username.strip().lower(), viewer_id)
    try:
        row = db.execute(statement).mappings().first()
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreFailureError("Something went wrong while fetching the channel") from e

    if row is None:
        raise NotFoundError("channel doesn't exist")

    return ChannelProfile(
        full_name=row["full_name"],
        username=row["username"],
        email=row["email"],
        avatar=row["avatar"],
        cover_image=row["cover_image"] or "",
        subscribers_count=row["subscribers_count"],
        channels_subscribed_to_count=row["channels_subscribed_to_count"],
        is_subscribed=bool(row["is_subscribed"]),
    )
