"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT creation/verification via PyJWT
- JTI generation for token identifiers
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError

ph = PasswordHasher()

ACCESS = "access"
REFRESH = "refresh"


class TokenError(Exception):
    """Base class for token service failures."""


class InvalidTokenError(TokenError):
    """Signature mismatch, malformed payload, wrong type or expiry."""


class TokenGenerationError(TokenError):
    """The token could not be signed."""


@dataclass(frozen=True)
class TokenConfig:
    access_secret: str
    refresh_secret: str
    access_expires: timedelta
    refresh_expires: timedelta
    algorithm: str = "HS256"
    issuer: str = "accounts-api"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """ Verify a plaintext password using argon2
    """
    if not password_hash:
        return False
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """
    Issues and verifies the two token kinds.
    Stateless apart from the TokenConfig it is built with.
    """

    def __init__(self, config: TokenConfig):
        self.config = config

    def _issue(self, subject: str, token_type: str, secret: str, expires: timedelta) -> str:
        now = _now()
        payload = {
            "iss": self.config.issuer,
            "sub": str(subject),
            "iat": int(now.timestamp()),
            "exp": int((now + expires).timestamp()),
            "type": token_type,
            "jti": generate_jti(),
        }
        try:
            return jwt.encode(payload, secret, algorithm=self.config.algorithm)
        except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as exc:
            raise TokenGenerationError(f"Could not sign {token_type} token: {exc}") from exc

    def issue_access_token(self, user_id: str) -> str:
        return self._issue(user_id, ACCESS, self.config.access_secret, self.config.access_expires)

    def issue_refresh_token(self, user_id: str) -> str:
        return self._issue(user_id, REFRESH, self.config.refresh_secret, self.config.refresh_expires)

    def issue_pair(self, user_id: str) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(user_id),
            refresh_token=self.issue_refresh_token(user_id),
        )

    def verify(self, token: str, secret: str) -> Dict[str, Any]:
        """
        Decode and validate a JWT signed with `secret`.
        Raises InvalidTokenError on invalid signature, malformed payload or expiry.
        """
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[self.config.algorithm],
                issuer=self.config.issuer,
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidTokenError("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError(f"Invalid token: {exc}") from exc

    def _verify_typed(self, token: str, secret: str, expected_type: str) -> Dict[str, Any]:
        decoded = self.verify(token, secret)
        if decoded.get("type") != expected_type:
            raise InvalidTokenError("Wrong token type")
        return decoded

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        return self._verify_typed(token, self.config.access_secret, ACCESS)

    def verify_refresh_token(self, token: str) -> Dict[str, Any]:
        return self._verify_typed(token, self.config.refresh_secret, REFRESH)
