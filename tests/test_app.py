from api.config import DevelopmentConfig, ProductionConfig, TestingConfig, get_config, token_config
from api.cookies import cookie_config


def test_get_config_selects_by_name():
    assert get_config("production") is ProductionConfig
    assert get_config("test") is TestingConfig
    assert get_config("dev") is DevelopmentConfig


def test_cookies_are_secure_only_in_production():
    assert cookie_config({"SESSION_COOKIE_SECURE": ProductionConfig.SESSION_COOKIE_SECURE}).secure is True
    assert cookie_config({"SESSION_COOKIE_SECURE": TestingConfig.SESSION_COOKIE_SECURE}).secure is False


def test_token_config_uses_distinct_secrets(app):
    config = token_config(app.config)
    assert config.access_secret != config.refresh_secret
    assert config.access_expires < config.refresh_expires


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/v1/nope")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "NOT_FOUND", "message": "Resource not found", "status": 404}


def test_unexpected_error_is_500_without_stack_outside_debug(app):
    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    resp = app.test_client().get("/boom")

    body = resp.get_json()
    assert resp.status_code == 500
    assert body["error"] == "INTERNAL_ERROR"
    assert "stack" not in body


def test_debug_errors_include_stack(app):
    app.debug = True

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    body = app.test_client().get("/boom").get_json()
    assert "RuntimeError" in body["stack"]
