"""
Session cookies: `accessToken` and `refreshToken`, both httpOnly,
secure only when the config says so (production).
"""
from dataclasses import dataclass

from utils.security import TokenPair

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


@dataclass(frozen=True)
class CookieConfig:
    secure: bool = False
    httponly: bool = True


def cookie_config(config) -> CookieConfig:
    return CookieConfig(secure=bool(config.get("SESSION_COOKIE_SECURE", False)))


def set_session_cookies(response, tokens: TokenPair, config: CookieConfig):
    for name, value in ((ACCESS_COOKIE, tokens.access_token), (REFRESH_COOKIE, tokens.refresh_token)):
        response.set_cookie(name, value, httponly=config.httponly, secure=config.secure)
    return response


def clear_session_cookies(response, config: CookieConfig):
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(name, httponly=config.httponly, secure=config.secure)
    return response
