"""
SQLAlchemy-backed credential store.

Every database error is rolled back and re-raised as a service error with the
original exception chained, so callers can tell a duplicate from an outage.
"""
import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import ConflictError, StoreFailureError, ValidationFailedError
from ..models.user_models import DBUser

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("username", "email", "full_name", "hashed_password", "avatar")


class CredentialStore:
    """Persistence for user records, bound to one SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            logger.info("Integrity error while trying to %s: %s", action, e.orig)
            raise ConflictError() from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Store failure while trying to %s", action, exc_info=True)
            raise StoreFailureError(f"Something went wrong while trying to {action}") from e

    def find_by_identifier(self, username: Optional[str] = None, email: Optional[str] = None) -> Optional[DBUser]:
        """Returns the user whose username OR email matches."""
        conditions = []
        if username:
            conditions.append(DBUser.username == username.strip().lower())
        if email:
            conditions.append(DBUser.email == email.strip())
        if not conditions:
            return None
        with self._guard("look up user"):
            return self.db.query(DBUser).filter(or_(*conditions)).first()

    def find_by_id(self, user_id: str) -> Optional[DBUser]:
        with self._guard("load user"):
            return self.db.get(DBUser, str(user_id))

    def create(self, **fields) -> DBUser:
        """Inserts a new user. The username is stored lowercased."""
        if fields.get("username"):
            fields["username"] = fields["username"].strip().lower()
        user = DBUser(**fields)
        self._validate(user)
        with self._guard("create user"):
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        logger.info("Created user %s (%s)", user.username, user.id)
        return user

    def save(self, user: DBUser, skip_validation: bool = False) -> None:
        """Commits pending changes on user."""
        if not skip_validation:
            self._validate(user)
        with self._guard("save user"):
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)

    @staticmethod
    def _validate(user: DBUser) -> None:
        missing = [name for name in _REQUIRED_FIELDS if not getattr(user, name)]
        if missing:
            raise ValidationFailedError(f"Missing required fields: {', '.join(missing)}")
        if user.username != user.username.lower():
            raise ValidationFailedError("Username must be lowercase")
