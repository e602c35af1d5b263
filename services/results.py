"""
Explicit outcomes for service operations.

Services never raise for expected failures; they return a Result that
either carries a value or a ServiceError tagged with an ErrorKind.
The HTTP layer turns ServiceErrors into responses (see api.errors.unwrap).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL = "INTERNAL_ERROR"

    @property
    def status(self) -> int:
        return _STATUS[self]


_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


class Cause:
    """Stable machine-readable reasons reported next to the ErrorKind."""
    INVALID_INPUT = "INVALID_INPUT"
    AVATAR_MISSING = "AVATAR_MISSING"
    FILE_MISSING = "FILE_MISSING"
    USER_EXISTS = "USER_EXISTS"
    EMAIL_TAKEN = "EMAIL_TAKEN"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    BAD_CREDENTIALS = "BAD_CREDENTIALS"
    TOKEN_MISSING = "TOKEN_MISSING"
    TOKEN_INVALID = "TOKEN_INVALID"
    TOKEN_REUSED = "TOKEN_REUSED"
    TOKEN_GENERATION_FAILED = "TOKEN_GENERATION_FAILED"
    MEDIA_UPLOAD_FAILED = "MEDIA_UPLOAD_FAILED"
    STORAGE_FAILED = "STORAGE_FAILED"


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str
    cause: str
    details: Optional[dict] = field(default=None)

    @property
    def status(self) -> int:
        return self.kind.status


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[ServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def success(value: Any = None) -> Result:
    return Result(value=value)


def failure(kind: ErrorKind, message: str, cause: str, details: dict | None = None) -> Result:
    return Result(error=ServiceError(kind=kind, message=message, cause=cause, details=details))
