import io
import os

import pytest

from models import storage
from models.user import User

API = "/api/v1/users"


def register(client, username="alice", password="correct", email=None, cover=True, **overrides):
    form = {
        "fullname": "Alice Liddell",
        "email": email or f"{username}@example.com",
        "username": username,
        "password": password,
        "avatar": (io.BytesIO(b"avatar-bytes"), "avatar.png"),
    }
    if cover:
        form["coverImage"] = (io.BytesIO(b"cover-bytes"), "cover.jpg")
    form.update(overrides)
    return client.post(f"{API}/register", data=form, content_type="multipart/form-data")


def login(client, username="alice", password="correct"):
    return client.post(f"{API}/login", json={"username": username, "password": password})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def set_cookie_headers(resp):
    return resp.headers.getlist("Set-Cookie")


def test_health(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.get_json()["database"] == "ok"


class TestRegister:
    def test_register_returns_created_user(self, client, media):
        resp = register(client)

        assert resp.status_code == 201
        user = resp.get_json()["data"]
        assert user["username"] == "alice"
        assert user["avatar"].endswith("avatar.png")
        assert user["coverImage"].endswith("cover.jpg")
        assert "password" not in user and "refreshToken" not in user
        assert len(media.uploaded) == 2

    @pytest.mark.parametrize("field", ["fullname", "email", "username", "password"])
    def test_blank_field_is_400_and_nothing_created(self, client, app, field):
        resp = register(client, **{field: "   "})

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "VALIDATION_ERROR"
        with app.app_context():
            assert storage.count(User) == 0

    def test_duplicate_is_409(self, client, app):
        assert register(client).status_code == 201
        resp = register(client, email="other@example.com")

        assert resp.status_code == 409
        with app.app_context():
            assert storage.count(User) == 1

    def test_missing_avatar_is_400(self, client):
        resp = client.post(
            f"{API}/register",
            data={"fullname": "A", "email": "a@example.com", "username": "a", "password": "p"},
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert resp.get_json()["cause"] == "AVATAR_MISSING"

    def test_temp_files_do_not_linger(self, client, app):
        register(client, username="   ")
        folder = app.config["UPLOAD_FOLDER"]
        assert not os.path.isdir(folder) or os.listdir(folder) == []


class TestLogin:
    def test_login_sets_cookies_and_returns_sanitized_user(self, client):
        register(client)

        resp = login(client, "alice", "correct")

        assert resp.status_code == 200
        body = resp.get_json()["data"]
        assert body["user"]["username"] == "alice"
        assert "password" not in body["user"]
        assert "password_hash" not in body["user"]
        assert "refreshToken" not in body["user"]
        assert body["accessToken"] and body["refreshToken"]

        cookies = set_cookie_headers(resp)
        access = next(c for c in cookies if c.startswith("accessToken="))
        refresh = next(c for c in cookies if c.startswith("refreshToken="))
        assert "HttpOnly" in access and "HttpOnly" in refresh
        assert "Secure" not in access

    def test_login_by_email(self, client):
        register(client)
        resp = client.post(f"{API}/login", json={"email": "alice@example.com", "password": "correct"})
        assert resp.status_code == 200

    def test_wrong_password_is_401(self, client):
        register(client)
        resp = login(client, "alice", "wrong")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "UNAUTHORIZED"

    def test_unknown_user_is_404(self, client):
        assert login(client, "nobody", "correct").status_code == 404

    def test_missing_password_is_400(self, client):
        resp = client.post(f"{API}/login", json={"username": "alice", "password": ""})
        assert resp.status_code == 400


class TestSessionFlow:
    def test_access_token_reaches_identity_scoped_route(self, client):
        register(client)
        access = login(client).get_json()["data"]["accessToken"]

        resp = client.get(f"{API}/current-user", headers=bearer(access))

        assert resp.status_code == 200
        assert resp.get_json()["data"]["username"] == "alice"

    def test_identity_routes_require_token(self, client):
        resp = client.get(f"{API}/current-user")
        assert resp.status_code == 401
        assert resp.get_json()["cause"] == "TOKEN_MISSING"

    def test_refresh_with_body_token(self, client):
        register(client)
        issued = login(client).get_json()["data"]

        resp = client.post(f"{API}/refresh-token", json={"refreshToken": issued["refreshToken"]})

        assert resp.status_code == 200
        rotated = resp.get_json()["data"]
        assert rotated["refreshToken"] != issued["refreshToken"]
        replay = client.post(f"{API}/refresh-token", json={"refreshToken": issued["refreshToken"]})
        assert replay.status_code == 401

    def test_refresh_with_cookie(self, browser):
        register(browser)
        login(browser)
        old = browser.get_cookie("refreshToken").value

        resp = browser.post(f"{API}/refresh-token")

        assert resp.status_code == 200
        assert browser.get_cookie("refreshToken").value != old

    def test_refresh_without_token_is_401(self, client):
        assert client.post(f"{API}/refresh-token", json={}).status_code == 401

    @pytest.mark.parametrize("body", [["x"], "token", 42, {"refreshToken": 123}])
    def test_malformed_refresh_body_is_400(self, client, body):
        resp = client.post(f"{API}/refresh-token", json=body)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "VALIDATION_ERROR"

    def test_garbage_refresh_token_is_401_not_500(self, client):
        resp = client.post(f"{API}/refresh-token", json={"refreshToken": "garbage"})
        assert resp.status_code == 401
        assert resp.get_json()["cause"] == "TOKEN_INVALID"

    def test_second_login_invalidates_first(self, client):
        register(client)
        first = login(client).get_json()["data"]["refreshToken"]
        second = login(client).get_json()["data"]["refreshToken"]

        assert client.post(f"{API}/refresh-token", json={"refreshToken": first}).status_code == 401
        assert client.post(f"{API}/refresh-token", json={"refreshToken": second}).status_code == 200

    def test_logout_then_refresh_fails(self, client):
        register(client)
        issued = login(client).get_json()["data"]

        resp = client.post(f"{API}/logout", headers=bearer(issued["accessToken"]))

        assert resp.status_code == 200
        cleared = set_cookie_headers(resp)
        assert any(c.startswith("accessToken=;") for c in cleared)
        assert any(c.startswith("refreshToken=;") for c in cleared)
        again = client.post(f"{API}/refresh-token", json={"refreshToken": issued["refreshToken"]})
        assert again.status_code == 401

    def test_browser_logout_clears_cookies(self, browser):
        register(browser)
        login(browser)

        assert browser.post(f"{API}/logout").status_code == 200
        assert browser.get_cookie("accessToken") is None
        assert browser.get_cookie("refreshToken") is None


class TestAccount:
    @pytest.fixture
    def access(self, client):
        register(client)
        return login(client).get_json()["data"]["accessToken"]

    def test_change_password_wrong_old_is_401(self, client, access):
        resp = client.post(
            f"{API}/change-password",
            json={"oldPassword": "wrong", "newPassword": "brand-new"},
            headers=bearer(access),
        )
        assert resp.status_code == 401
        assert login(client, "alice", "correct").status_code == 200

    def test_change_password(self, client, access):
        resp = client.post(
            f"{API}/change-password",
            json={"oldPassword": "correct", "newPassword": "brand-new"},
            headers=bearer(access),
        )
        assert resp.status_code == 200
        assert login(client, "alice", "brand-new").status_code == 200
        assert login(client, "alice", "correct").status_code == 401

    def test_update_account(self, client, access):
        resp = client.patch(
            f"{API}/update-account",
            json={"fullname": "Alice L.", "email": "alice.l@example.com"},
            headers=bearer(access),
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["email"] == "alice.l@example.com"

    def test_update_account_rejects_list_body(self, client, access):
        resp = client.patch(f"{API}/update-account", json=["x"], headers=bearer(access))
        assert resp.status_code == 400

    def test_update_account_requires_fields(self, client, access):
        resp = client.patch(f"{API}/update-account", json={"fullname": ""}, headers=bearer(access))
        assert resp.status_code == 400

    def test_update_avatar(self, client, access, media):
        resp = client.patch(
            f"{API}/avatar",
            data={"avatar": (io.BytesIO(b"new"), "new-face.png")},
            content_type="multipart/form-data",
            headers=bearer(access),
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["avatar"].endswith("new-face.png")
        assert media.deleted == []

    def test_update_cover_image_requires_file(self, client, access):
        resp = client.patch(f"{API}/cover-image", data={}, content_type="multipart/form-data", headers=bearer(access))
        assert resp.status_code == 400
