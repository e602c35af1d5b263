import os
import sys
from datetime import timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from api import create_app  # noqa: E402
from models import storage  # noqa: E402
from models.user_store import UserStore  # noqa: E402
from services.accounts import AccountService  # noqa: E402
from services.sessions import SessionController  # noqa: E402
from utils.media import MediaAsset  # noqa: E402
from utils.security import TokenConfig, TokenService  # noqa: E402

ACCESS_SECRET = "unit-access-secret-0123456789abcdef"
REFRESH_SECRET = "unit-refresh-secret-0123456789abcdef"


class FakeMediaStore:
    """In-memory media store; consumes local files like the S3 store does."""

    def __init__(self):
        self.uploaded = []
        self.deleted = []
        self.fail_on = set()

    def upload(self, local_path):
        if not local_path:
            return None
        name = os.path.basename(local_path)
        if os.path.exists(local_path):
            os.remove(local_path)
        if any(marker in name for marker in self.fail_on):
            return None
        asset = MediaAsset(url=f"https://media.test/{name}", id=name)
        self.uploaded.append(asset)
        return asset

    def delete(self, media_id):
        self.deleted.append(media_id)


@pytest.fixture
def media():
    return FakeMediaStore()


@pytest.fixture
def db():
    storage.configure("sqlite://")
    storage.reload()
    yield storage
    storage.close()


@pytest.fixture
def users(db):
    return UserStore(db)


@pytest.fixture
def token_config():
    return TokenConfig(
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_expires=timedelta(minutes=15),
        refresh_expires=timedelta(days=10),
    )


@pytest.fixture
def tokens(token_config):
    return TokenService(token_config)


@pytest.fixture
def sessions(users, tokens):
    return SessionController(users, tokens)


@pytest.fixture
def accounts(users, media):
    return AccountService(users, media)


@pytest.fixture
def make_user(users):
    def _make(username="alice", email=None, password="correct", fullname="Alice Liddell"):
        return users.create(
            username=username,
            email=email or f"{username}@example.com",
            fullname=fullname,
            password=password,
            avatar=f"https://media.test/{username}.png",
        )
    return _make


@pytest.fixture
def app(media, tmp_path):
    app = create_app("testing", media_store=media)
    app.config["UPLOAD_FOLDER"] = str(tmp_path / "uploads")
    yield app
    storage.close()


@pytest.fixture
def client(app):
    """API-style client: tokens are passed explicitly, no cookie jar."""
    return app.test_client(use_cookies=False)


@pytest.fixture
def browser(app):
    """Browser-style client that keeps the session cookies."""
    return app.test_client()
