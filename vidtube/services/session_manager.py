"""
Login, refresh-token rotation, logout and password change.

Only one refresh token per user is valid at a time: it is stored on the user
row when issued and compared byte-for-byte when presented. Issuing a new one
overwrites the old value, logging out clears it.
"""
import logging
import threading
import weakref
from dataclasses import dataclass
from typing import Optional

from ..core.errors import (InvalidCredentialError, InvalidTokenError,
                           MissingCredentialError, NotFoundError,
                           TokenReuseDetectedError, UnauthorizedError)
from ..models.user_models import DBUser
from ..utils import auth
from .credential_store import CredentialStore

logger = logging.getLogger(__name__)

# Serializes refreshes of the same user within this process. An entry lives
# only while some refresh holds a reference to its lock.
_refresh_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
_refresh_locks_guard = threading.Lock()


def _refresh_lock_for(user_id: str) -> threading.Lock:
    with _refresh_locks_guard:
        lock = _refresh_locks.get(user_id)
        if lock is None:
            lock = threading.Lock()
            _refresh_locks[user_id] = lock
        return lock


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class LoginResult:
    user: DBUser
    tokens: TokenPair


class SessionManager:
    """Session lifecycle for users held in a CredentialStore."""

    def __init__(self, store: CredentialStore):
        self.store = store

    def _issue_token_pair(self, user: DBUser) -> TokenPair:
        """Mints a pair and persists the refresh token, replacing the previous one."""
        tokens = TokenPair(
            access_token=auth.create_access_token(
                user.id,
                extra_claims={"username": user.username, "email": user.email, "full_name": user.full_name},
            ),
            refresh_token=auth.create_refresh_token(user.id),
        )
        user.refresh_token = tokens.refresh_token
        self.store.save(user, skip_validation=True)
        return tokens

    def login(self, password: str, username: Optional[str] = None, email: Optional[str] = None) -> LoginResult:
        """
        Authenticates by username or email and issues a fresh token pair.

        Raises MissingCredentialError without an identifier, NotFoundError for an
        unknown user and InvalidCredentialError for a wrong password.
        """
        if not username and not email:
            raise MissingCredentialError()

        user = self.store.find_by_identifier(username=username, email=email)
        if user is None:
            logger.debug("Login failed: no user for username=%r email=%r", username, email)
            raise NotFoundError()

        if not auth.verify_password(password, user.hashed_password):
            logger.debug("Login failed: invalid password for user '%s'.", user.username)
            raise InvalidCredentialError()

        tokens = self._issue_token_pair(user)
        logger.info("User '%s' logged in.", user.username)
        return LoginResult(user=user, tokens=tokens)

    def refresh(self, presented_refresh_token: Optional[str]) -> TokenPair:
        """
        Exchanges the current refresh token for a new pair, invalidating it.

        Raises UnauthorizedError when no token is presented, InvalidTokenError for a
        bad signature, an unknown user or a logged out session, and
        TokenReuseDetectedError for a token that was already rotated.
        """
        if not presented_refresh_token:
            raise UnauthorizedError()

        user_id = auth.verify_refresh_token(presented_refresh_token)

        with _refresh_lock_for(user_id):
            user = self.store.find_by_id(user_id)
            if user is None:
                logger.warning("Refresh token names unknown user %s.", user_id)
                raise InvalidTokenError()
            if not user.refresh_token:
                logger.info("Refresh attempted for logged out user '%s'.", user.username)
                raise InvalidTokenError()
            if presented_refresh_token != user.refresh_token:
                logger.warning("Stale refresh token presented for user '%s'.", user.username)
                raise TokenReuseDetectedError()

            tokens = self._issue_token_pair(user)

        logger.info("Rotated refresh token for user '%s'.", user.username)
        return tokens

    def logout(self, user_id: str) -> None:
        """Clears the stored refresh token. Raises NotFoundError for an unknown user."""
        user = self.store.find_by_id(user_id)
        if user is None:
            raise NotFoundError()
        user.refresh_token = None
        self.store.save(user, skip_validation=True)
        logger.info("User '%s' logged out.", user.username)

    def change_password(self, user_id: str, old_password: str, new_password: str) -> None:
        """
        Replaces the password hash, leaving the current session valid.
        Raises NotFoundError for an unknown user and InvalidCredentialError
        when the old password does not match.
        """
        user = self.store.find_by_id(user_id)
        if user is None:
            raise NotFoundError()
        if not auth.verify_password(old_password, user.hashed_password):
            raise InvalidCredentialError("Invalid old password")
        user.hashed_password = auth.get_password_hash(new_password)
        self.store.save(user, skip_validation=True)
        logger.info("Password changed for user '%s'.", user.username)
