"""
UserStore: the credential store used by the session and account services.

Partial updates go through update_field()/update_fields(), which only
touch the named columns. swap_refresh_token() is a single conditional
UPDATE so two refreshes racing on the same token cannot both win.
"""
from __future__ import annotations

from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from models.db_storage import DBStorage
from models.user import User

UPDATABLE_FIELDS = {
    "fullname",
    "email",
    "avatar",
    "cover_image",
    "password_hash",
    "refresh_token",
}


class UserStore:
    def __init__(self, storage: DBStorage):
        self.storage = storage

    @property
    def session(self):
        return self.storage.get_session()

    def find_by_id(self, user_id: str | None) -> User | None:
        if not user_id:
            return None
        return self.storage.get(User, user_id)

    def find_by_identity(self, username: str | None = None, email: str | None = None) -> User | None:
        clauses = []
        if username:
            clauses.append(User.username == username.strip().lower())
        if email:
            clauses.append(User.email == email.strip().lower())
        if not clauses:
            return None
        return self.session.query(User).filter(or_(*clauses)).first()

    def create(self, **fields: Any) -> User:
        user = User(**fields)
        self.storage.new(user)
        self.storage.save()
        return user

    def update_fields(self, user_id: str, **fields: Any) -> User | None:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")
        user = self.find_by_id(user_id)
        if user is None:
            return None
        for name, value in fields.items():
            setattr(user, name, value)
        self.storage.save()
        return user

    def update_field(self, user_id: str, field: str, value: Any) -> User | None:
        return self.update_fields(user_id, **{field: value})

    def save(self, user: User) -> User:
        self.storage.new(user)
        self.storage.save()
        return user

    def swap_refresh_token(self, user_id: str, expected: str, new: str | None) -> bool:
        """Replace the stored refresh token only if it still equals `expected`."""
        try:
            updated = (
                self.session.query(User)
                .filter(User.id == user_id, User.refresh_token == expected)
                .update({User.refresh_token: new}, synchronize_session="evaluate")
            )
        except SQLAlchemyError:
            self.storage.rollback()
            raise
        self.storage.save()
        return updated == 1
