"""Unit tests for the password verifier and the token issuer."""

from datetime import timedelta

import pytest
from jose import jwt

from vidtube.config.settings import settings
from vidtube.core.errors import InvalidSignatureError, InvalidTokenError, TokenExpiredError
from vidtube.utils import auth


class TestPasswordHashing:

    def test_hash_is_not_plaintext(self):
        hashed = auth.get_password_hash("TestPassword123!")

        assert hashed != "TestPassword123!"
        assert hashed.startswith("$2")

    def test_same_password_produces_different_hashes(self):
        assert auth.get_password_hash("p1") != auth.get_password_hash("p1")

    def test_verify_matches_correct_password(self):
        hashed = auth.get_password_hash("p1")

        assert auth.verify_password("p1", hashed) is True

    def test_verify_rejects_wrong_password(self):
        hashed = auth.get_password_hash("p1")

        assert auth.verify_password("p2", hashed) is False

    def test_verify_returns_false_for_malformed_hash(self):
        """A broken stored hash is a mismatch, not an exception."""
        assert auth.verify_password("p1", "not-a-bcrypt-hash") is False
        assert auth.verify_password("p1", None) is False
        assert auth.verify_password("", auth.get_password_hash("p1")) is False


class TestTokenIssuer:

    def test_refresh_token_round_trip_returns_user_id(self):
        token = auth.create_refresh_token("user-123")

        assert auth.verify_refresh_token(token) == "user-123"

    def test_access_token_carries_claims(self):
        token = auth.create_access_token("user-123", extra_claims={"username": "alice"})
        claims = auth.verify_access_token(token)

        assert claims["sub"] == "user-123"
        assert claims["username"] == "alice"
        assert claims["type"] == "access"
        assert "exp" in claims

    def test_tokens_issued_back_to_back_differ(self):
        assert auth.create_refresh_token("user-123") != auth.create_refresh_token("user-123")

    def test_access_token_is_not_a_refresh_token(self):
        """Access and refresh tokens use distinct secrets."""
        token = auth.create_access_token("user-123")

        with pytest.raises(InvalidSignatureError):
            auth.verify_refresh_token(token)

    def test_refresh_token_is_not_an_access_token(self):
        token = auth.create_refresh_token("user-123")

        with pytest.raises(InvalidSignatureError):
            auth.verify_access_token(token)

    def test_wrong_token_type_rejected_even_with_right_secret(self):
        token = jwt.encode({"sub": "user-123", "type": "access"}, settings.REFRESH_TOKEN_SECRET,
                           algorithm=settings.ALGORITHM)

        with pytest.raises(InvalidSignatureError):
            auth.verify_refresh_token(token)

    def test_token_without_subject_rejected(self):
        token = jwt.encode({"type": "refresh"}, settings.REFRESH_TOKEN_SECRET, algorithm=settings.ALGORITHM)

        with pytest.raises(InvalidSignatureError):
            auth.verify_refresh_token(token)

    def test_expired_refresh_token(self):
        token = auth.create_refresh_token("user-123", expires_delta=timedelta(seconds=-5))

        with pytest.raises(TokenExpiredError):
            auth.verify_refresh_token(token)

    def test_garbage_token(self):
        with pytest.raises(InvalidTokenError):
            auth.verify_refresh_token("invalid.token.here")

    def test_default_lifetimes_follow_settings(self):
        access = jwt.get_unverified_claims(auth.create_access_token("u"))
        refresh = jwt.get_unverified_claims(auth.create_refresh_token("u"))

        assert access["exp"] - access["iat"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        assert refresh["exp"] - refresh["iat"] == settings.REFRESH_TOKEN_EXPIRE_MINUTES * 60
