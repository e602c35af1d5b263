"""
Session lifecycle: login, refresh, logout and password change.

State per user: Anonymous -> Authenticated -> (Refreshed)* -> LoggedOut.
Only the refresh token stored on the user row is trusted; issuing a new
one replaces it, so every earlier refresh token stops working.
"""
from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from models.schemas.user import sanitize
from models.user import User
from models.user_store import UserStore
from services.results import Cause, ErrorKind, Result, failure, success
from utils.security import (
    InvalidTokenError,
    TokenGenerationError,
    TokenPair,
    TokenService,
    hash_password,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    user: dict
    tokens: TokenPair


def _blank(value) -> bool:
    return value is None or not str(value).strip()


def _token_generation_failed(exc: TokenGenerationError) -> Result:
    logger.error("Token generation failed: %s", exc)
    return failure(
        ErrorKind.INTERNAL,
        "Something went wrong while generating the access and refresh tokens",
        Cause.TOKEN_GENERATION_FAILED,
    )


def _storage_failed(action: str) -> Result:
    logger.exception("Storage failure during %s", action)
    return failure(ErrorKind.INTERNAL, f"Something went wrong during {action}", Cause.STORAGE_FAILED)


class SessionController:
    def __init__(self, users: UserStore, tokens: TokenService):
        self.users = users
        self.tokens = tokens

    def _lookup(self, identifier: str) -> User | None:
        identifier = identifier.strip()
        return self.users.find_by_identity(username=identifier, email=identifier)

    def login(self, identifier: str | None, password: str | None) -> Result:
        if _blank(identifier) or _blank(password):
            return failure(ErrorKind.VALIDATION, "username or email and password are required", Cause.INVALID_INPUT)

        user = self._lookup(identifier)
        if user is None:
            return failure(ErrorKind.NOT_FOUND, "User not found", Cause.USER_NOT_FOUND)
        if not user.is_password_correct(password):
            return failure(ErrorKind.UNAUTHORIZED, "Invalid credentials", Cause.BAD_CREDENTIALS)

        try:
            pair = self.tokens.issue_pair(user.id)
        except TokenGenerationError as exc:
            return _token_generation_failed(exc)

        try:
            user = self.users.update_field(user.id, "refresh_token", pair.refresh_token)
        except SQLAlchemyError:
            return _storage_failed("login")
        if user is None:
            return failure(ErrorKind.NOT_FOUND, "User not found", Cause.USER_NOT_FOUND)

        logger.info("User %s logged in", user.id)
        return success(LoginResult(user=sanitize(user), tokens=pair))

    def refresh(self, incoming_refresh_token: str | None) -> Result:
        if _blank(incoming_refresh_token):
            return failure(ErrorKind.UNAUTHORIZED, "Refresh token is required", Cause.TOKEN_MISSING)

        try:
            claims = self.tokens.verify_refresh_token(incoming_refresh_token)
        except InvalidTokenError as exc:
            return failure(ErrorKind.UNAUTHORIZED, str(exc), Cause.TOKEN_INVALID)

        user = self.users.find_by_id(claims.get("sub"))
        if user is None:
            return failure(ErrorKind.UNAUTHORIZED, "Invalid refresh token", Cause.TOKEN_INVALID)

        stored = user.refresh_token or ""
        if not hmac.compare_digest(stored.encode(), incoming_refresh_token.encode()):
            logger.warning("Superseded refresh token presented for user %s", user.id)
            return failure(ErrorKind.UNAUTHORIZED, "Refresh token is expired or used", Cause.TOKEN_REUSED)

        try:
            pair = self.tokens.issue_pair(user.id)
        except TokenGenerationError as exc:
            return _token_generation_failed(exc)

        try:
            swapped = self.users.swap_refresh_token(user.id, incoming_refresh_token, pair.refresh_token)
        except SQLAlchemyError:
            return _storage_failed("token refresh")
        if not swapped:
            # a concurrent refresh rotated the token between our read and write
            return failure(ErrorKind.UNAUTHORIZED, "Refresh token is expired or used", Cause.TOKEN_REUSED)

        logger.info("Rotated refresh token for user %s", user.id)
        return success(pair)

    def logout(self, user_id: str) -> Result:
        try:
            self.users.update_field(user_id, "refresh_token", None)
        except SQLAlchemyError:
            return _storage_failed("logout")
        logger.info("User %s logged out", user_id)
        return success({})

    def change_password(self, user_id: str, old_password: str | None, new_password: str | None) -> Result:
        if _blank(old_password) or _blank(new_password):
            return failure(ErrorKind.VALIDATION, "oldPassword and newPassword are required", Cause.INVALID_INPUT)

        user = self.users.find_by_id(user_id)
        if user is None:
            return failure(ErrorKind.NOT_FOUND, "User not found", Cause.USER_NOT_FOUND)
        if not user.is_password_correct(old_password):
            return failure(ErrorKind.UNAUTHORIZED, "Old password is incorrect", Cause.BAD_CREDENTIALS)

        try:
            self.users.update_field(user.id, "password_hash", hash_password(new_password))
        except SQLAlchemyError:
            return _storage_failed("password change")
        logger.info("Password changed for user %s", user.id)
        return success({})

    def authenticate(self, access_token: str | None) -> Result:
        """Resolve a bearer access token to its user."""
        if _blank(access_token):
            return failure(ErrorKind.UNAUTHORIZED, "Unauthorized request", Cause.TOKEN_MISSING)
        try:
            claims = self.tokens.verify_access_token(access_token)
        except InvalidTokenError as exc:
            return failure(ErrorKind.UNAUTHORIZED, str(exc), Cause.TOKEN_INVALID)

        user = self.users.find_by_id(claims.get("sub"))
        if user is None:
            return failure(ErrorKind.UNAUTHORIZED, "Invalid access token", Cause.TOKEN_INVALID)
        return success(user)
