"""Integration tests for the HTTP API.

Covers registration, login, refresh-token rotation through cookies and
bodies, logout, password change, profile editing and channel profiles.
"""

import pytest

from vidtube.config.settings_loader import set_setting
from vidtube.db.database import SessionLocal
from vidtube.models.subscription_models import DBSubscription

API = "/api/v1"
STRONG_PASSWORD = "Secret123!"
PNG = b"\x89PNG\r\n\x1a\n fake image"


def register(client, username="alice", email="alice@example.com", password=STRONG_PASSWORD,
             full_name="Alice Liddell", with_avatar=True, cover=False):
    files = {}
    if with_avatar:
        files["avatar"] = ("avatar.png", PNG, "image/png")
    if cover:
        files["cover_image"] = ("cover.jpg", PNG, "image/jpeg")
    return client.post(
        f"{API}/auth/register",
        data={"username": username, "email": email, "full_name": full_name, "password": password},
        files=files or None,
    )


def login(client, **credentials):
    credentials.setdefault("password", STRONG_PASSWORD)
    return client.post(f"{API}/auth/login", json=credentials)


@pytest.fixture
def alice(client):
    response = register(client)
    assert response.status_code == 201, response.text
    return response.json()


class TestRegister:

    def test_register_returns_public_profile(self, client):
        response = register(client, username="Alice", cover=True)

        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "alice"
        assert data["avatar"].startswith(f"{API}/users/media/avatar_")
        assert data["cover_image"].startswith(f"{API}/users/media/cover_")
        assert "hashed_password" not in data
        assert "refresh_token" not in data

    def test_uploaded_avatar_is_served(self, client, alice):
        response = client.get(alice["avatar"])

        assert response.status_code == 200
        assert response.content == PNG

    def test_media_path_traversal_is_rejected(self, client):
        assert client.get(f"{API}/users/media/..%2Ftest.db").status_code == 404

    def test_register_requires_avatar(self, client):
        response = register(client, with_avatar=False)

        assert response.status_code == 400
        assert response.json()["detail"] == "Avatar file is required"

    def test_register_rejects_non_image(self, client):
        response = client.post(
            f"{API}/auth/register",
            data={"username": "alice", "email": "alice@example.com", "full_name": "A", "password": STRONG_PASSWORD},
            files={"avatar": ("avatar.exe", b"MZ", "application/octet-stream")},
        )

        assert response.status_code == 400

    def test_register_missing_fields(self, client):
        response = register(client, full_name="")

        assert response.status_code == 400
        assert response.json()["error_code"] == "validation_error"

    def test_register_duplicate(self, client, alice):
        response = register(client, email="other@example.com")

        assert response.status_code == 409
        assert "already exists" in response.json()["detail"]

    def test_register_weak_password(self, client):
        response = register(client, password="short")

        assert response.status_code == 422

    def test_register_invalid_email(self, client):
        assert register(client, email="not-an-email").status_code == 422

    def test_register_disabled_by_runtime_setting(self, client):
        db = SessionLocal()
        try:
            set_setting(db, "REGISTER_ENDPOINT_ENABLED", "false")
        finally:
            db.close()

        response = register(client)

        assert response.status_code == 403
        assert response.json()["error_code"] == "feature_disabled"


class TestLogin:

    def test_login_sets_cookies_and_returns_tokens(self, client, alice):
        response = login(client, username="alice")

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == alice["id"]
        assert data["token_type"] == "bearer"
        assert response.cookies["access_token"] == data["access_token"]
        assert response.cookies["refresh_token"] == data["refresh_token"]
        set_cookie = response.headers.get_list("set-cookie")
        assert all("HttpOnly" in header and "Secure" in header for header in set_cookie)

    def test_login_by_email(self, client, alice):
        assert login(client, email="alice@example.com").status_code == 200

    def test_login_without_identifier(self, client):
        response = login(client)

        assert response.status_code == 400
        assert response.json()["error_code"] == "missing_credential"

    def test_login_unknown_user(self, client, alice):
        response = login(client, username="bob")

        assert response.status_code == 404

    def test_login_wrong_password(self, client, alice):
        response = login(client, username="alice", password="Wrong123!")

        assert response.status_code == 401
        assert response.json()["error_code"] == "invalid_credential"
        assert response.headers["www-authenticate"] == "Bearer"


class TestRefreshAndLogout:

    def test_refresh_with_cookie_rotates(self, client, alice):
        first = login(client, username="alice").json()

        response = client.post(f"{API}/auth/refresh-token")

        assert response.status_code == 200
        assert response.json()["refresh_token"] != first["refresh_token"]
        assert client.cookies["refresh_token"] == response.json()["refresh_token"]

    def test_reused_refresh_token_in_body(self, client, alice):
        first = login(client, username="alice").json()
        client.cookies.clear()
        assert client.post(f"{API}/auth/refresh-token", json={"refresh_token": first["refresh_token"]}).status_code == 200
        client.cookies.clear()

        response = client.post(f"{API}/auth/refresh-token", json={"refresh_token": first["refresh_token"]})

        assert response.status_code == 401
        assert response.json()["error_code"] == "token_reuse_detected"

    def test_refresh_without_token(self, client):
        response = client.post(f"{API}/auth/refresh-token")

        assert response.status_code == 401
        assert response.json()["error_code"] == "unauthorized"

    def test_refresh_with_garbage_token(self, client):
        response = client.post(f"{API}/auth/refresh-token", json={"refresh_token": "garbage"})

        assert response.status_code == 401
        assert response.json()["error_code"] == "invalid_token"

    def test_logout_then_refresh_fails(self, client, alice):
        tokens = login(client, username="alice").json()

        response = client.post(f"{API}/auth/logout")

        assert response.status_code == 200
        assert "refresh_token" not in client.cookies
        response = client.post(f"{API}/auth/refresh-token", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == 401
        assert response.json()["error_code"] == "invalid_token"

    def test_logout_requires_authentication(self, client):
        response = client.post(f"{API}/auth/logout")

        assert response.status_code == 401


class TestAuthenticatedUser:

    def test_me_with_bearer_header(self, client, alice):
        access_token = login(client, username="alice").json()["access_token"]
        client.cookies.clear()

        response = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {access_token}"})

        assert response.status_code == 200
        assert response.json()["email"] == "alice@example.com"

    def test_me_rejects_refresh_token(self, client, alice):
        refresh_token = login(client, username="alice").json()["refresh_token"]
        client.cookies.clear()

        response = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {refresh_token}"})

        assert response.status_code == 401

    def test_change_password(self, client, alice):
        login(client, username="alice")

        response = client.post(
            f"{API}/auth/change-password",
            json={"old_password": STRONG_PASSWORD, "new_password": "Another456?"},
        )

        assert response.status_code == 200
        assert login(client, username="alice", password="Another456?").status_code == 200
        assert login(client, username="alice").status_code == 401

    def test_change_password_wrong_old(self, client, alice):
        login(client, username="alice")

        response = client.post(
            f"{API}/auth/change-password",
            json={"old_password": "Nope1234!", "new_password": "Another456?"},
        )

        assert response.status_code == 401

    def test_update_account_details(self, client, alice):
        login(client, username="alice")

        response = client.patch(f"{API}/users/me", json={"full_name": "Alice L.", "email": "al@example.com"})

        assert response.status_code == 200
        assert response.json()["full_name"] == "Alice L."
        assert response.json()["email"] == "al@example.com"

    def test_update_account_details_requires_both(self, client, alice):
        login(client, username="alice")

        response = client.patch(f"{API}/users/me", json={"full_name": "Alice L."})

        assert response.status_code == 400

    def test_update_avatar(self, client, alice):
        login(client, username="alice")

        response = client.patch(f"{API}/users/me/avatar", files={"avatar": ("new.png", PNG, "image/png")})

        assert response.status_code == 200
        assert response.json()["avatar"] != alice["avatar"]

    def test_update_cover_image_without_file(self, client, alice):
        login(client, username="alice")

        response = client.patch(f"{API}/users/me/cover-image")

        assert response.status_code == 400

    def test_channel_profile(self, client, alice):
        bob = register(client, username="bob", email="bob@example.com").json()
        db = SessionLocal()
        try:
            db.add(DBSubscription(subscriber_id=bob["id"], channel_id=alice["id"]))
            db.commit()
        finally:
            db.close()
        login(client, username="bob")

        response = client.get(f"{API}/users/c/Alice")

        assert response.status_code == 200
        data = response.json()
        assert data["subscribers_count"] == 1
        assert data["channels_subscribed_to_count"] == 0
        assert data["is_subscribed"] is True

    def test_unknown_channel(self, client, alice):
        login(client, username="alice")

        assert client.get(f"{API}/users/c/nobody").status_code == 404


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "Welcome" in response.json()["message"]
