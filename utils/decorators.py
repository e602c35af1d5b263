from __future__ import annotations
from functools import wraps
from flask import request, g, current_app

from api.cookies import ACCESS_COOKIE
from api.errors import unwrap


def _bearer_token() -> str | None:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip()
    return None


def jwt_required():
    """Resolve the access token (cookie first, then Bearer header) to g.current_user."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            sessions = current_app.extensions["sessions"]
            g.current_user = unwrap(sessions.authenticate(_bearer_token()))
            return fn(*args, **kwargs)

        return wrapper

    return decorator
