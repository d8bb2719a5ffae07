import os
import tempfile
from pathlib import Path

# Settings are read at import time, so the environment goes first
_test_tmp_dir = Path(tempfile.mkdtemp(prefix="vidtube_test_"))
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret-for-testing-only")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret-for-testing-only")
os.environ["SQLALCHEMY_DATABASE_URL"] = f"sqlite:///{_test_tmp_dir / 'test.db'}"
os.environ["MEDIA_DIR"] = str(_test_tmp_dir / "media")
os.environ["TEMP_UPLOAD_DIR"] = str(_test_tmp_dir / "temp")
os.environ["SETTINGS_RELOAD_INTERVAL_SECONDS"] = "0"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from vidtube import models  # noqa: E402,F401
from vidtube.db.database import Base, SessionLocal, engine  # noqa: E402
from vidtube.main import app  # noqa: E402
from vidtube.services.credential_store import CredentialStore  # noqa: E402
from vidtube.services.media_host import LocalMediaHost  # noqa: E402
from vidtube.services.session_manager import SessionManager  # noqa: E402
from vidtube.utils.auth import get_password_hash  # noqa: E402

@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def store(db_session):
    return CredentialStore(db_session)

@pytest.fixture
def session_manager(store):
    return SessionManager(store)

@pytest.fixture
def media_host(tmp_path):
    return LocalMediaHost(tmp_path / "media", "/media")

@pytest.fixture
def make_user(store):
    """Create a user directly in the store with a hashed password."""
    def _make(username="alice", email="alice@x.com", password="p1", full_name="Alice Liddell"):
        return store.create(
            username=username,
            email=email,
            full_name=full_name,
            hashed_password=get_password_hash(password),
            avatar="/media/avatar.png",
        )
    return _make

@pytest.fixture
def client():
    """Test client running the app lifespan against a fresh database."""
    # https so the Secure token cookies are sent back
    with TestClient(app, base_url="https://testserver") as test_client:
        yield test_client
    Base.metadata.drop_all(bind=engine)
