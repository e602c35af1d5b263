"""
Registration and profile updates.

Registration uploads media before the user row exists, so a failed insert
deletes what was uploaded. Avatar and cover-image replacement do not clean
up the previous image.
"""
from __future__ import annotations

import logging
from typing import Mapping

from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.schemas.user import AccountUpdateSchema, UserRegisterSchema, sanitize
from models.user_store import UserStore
from services.results import Cause, ErrorKind, Result, failure, success

logger = logging.getLogger(__name__)

register_schema = UserRegisterSchema()
account_update_schema = AccountUpdateSchema()


class AccountService:
    def __init__(self, users: UserStore, media):
        self.users = users
        self.media = media

    def _rollback_media(self, *assets) -> None:
        for asset in assets:
            if asset is not None:
                logger.info("Removing uploaded media %s after failed registration", asset.id)
                self.media.delete(asset.id)

    def register(self, fields: Mapping, avatar_path: str | None, cover_path: str | None = None) -> Result:
        try:
            data = register_schema.load(dict(fields))
        except ValidationError as err:
            return failure(ErrorKind.VALIDATION, "All fields are required", Cause.INVALID_INPUT, details=err.messages)

        if self.users.find_by_identity(username=data["username"], email=data["email"]):
            return failure(ErrorKind.CONFLICT, "User with email or username already exists", Cause.USER_EXISTS)

        if not avatar_path:
            return failure(ErrorKind.VALIDATION, "Avatar file is missing", Cause.AVATAR_MISSING)

        avatar = self.media.upload(avatar_path)
        if avatar is None:
            return failure(ErrorKind.INTERNAL, "Failed to upload avatar", Cause.MEDIA_UPLOAD_FAILED)

        cover = None
        if cover_path:
            cover = self.media.upload(cover_path)
            if cover is None:
                self._rollback_media(avatar)
                return failure(ErrorKind.INTERNAL, "Failed to upload cover image", Cause.MEDIA_UPLOAD_FAILED)

        try:
            user = self.users.create(
                fullname=data["fullname"],
                email=data["email"],
                username=data["username"],
                password=data["password"],
                avatar=avatar.url,
                cover_image=cover.url if cover else "",
            )
        except IntegrityError:
            logger.warning("Registration for %s lost a uniqueness race", data["username"])
            self._rollback_media(avatar, cover)
            return failure(ErrorKind.CONFLICT, "User with email or username already exists", Cause.USER_EXISTS)
        except SQLAlchemyError:
            logger.exception("User creation failed")
            self._rollback_media(avatar, cover)
            return failure(
                ErrorKind.INTERNAL,
                "Something went wrong while registering the user and images were deleted",
                Cause.STORAGE_FAILED,
            )

        logger.info("Registered user %s", user.id)
        return success(sanitize(user))

    def get_current_user(self, user_id: str) -> Result:
        user = self.users.find_by_id(user_id)
        if user is None:
            return failure(ErrorKind.NOT_FOUND, "User not found", Cause.USER_NOT_FOUND)
        return success(sanitize(user))

    def update_account_details(self, user_id: str, fields: Mapping) -> Result:
        try:
            data = account_update_schema.load(fields)
        except ValidationError as err:
            return failure(ErrorKind.VALIDATION, "Fullname and email are required", Cause.INVALID_INPUT, details=err.messages)

        owner = self.users.find_by_identity(email=data["email"])
        if owner is not None and owner.id != user_id:
            return failure(ErrorKind.CONFLICT, "Email already registered", Cause.EMAIL_TAKEN)

        try:
            user = self.users.update_fields(user_id, fullname=data["fullname"].strip(), email=data["email"])
        except IntegrityError:
            return failure(ErrorKind.CONFLICT, "Email already registered", Cause.EMAIL_TAKEN)
        except SQLAlchemyError:
            logger.exception("Account update failed for user %s", user_id)
            return failure(ErrorKind.INTERNAL, "Something went wrong while updating the account", Cause.STORAGE_FAILED)
        if user is None:
            return failure(ErrorKind.NOT_FOUND, "User not found", Cause.USER_NOT_FOUND)
        return success(sanitize(user))

    def _replace_image(self, user_id: str, local_path: str | None, field: str, label: str) -> Result:
        if not local_path:
            return failure(ErrorKind.VALIDATION, f"{label} file is required", Cause.FILE_MISSING)
        if self.users.find_by_id(user_id) is None:
            return failure(ErrorKind.NOT_FOUND, "User not found", Cause.USER_NOT_FOUND)

        asset = self.media.upload(local_path)
        if asset is None or not asset.url:
            return failure(ErrorKind.INTERNAL, f"Something went wrong while uploading {label}", Cause.MEDIA_UPLOAD_FAILED)

        try:
            user = self.users.update_field(user_id, field, asset.url)
        except SQLAlchemyError:
            logger.exception("Could not store new %s for user %s", label, user_id)
            return failure(ErrorKind.INTERNAL, f"Something went wrong while updating {label}", Cause.STORAGE_FAILED)
        if user is None:
            return failure(ErrorKind.NOT_FOUND, "User not found", Cause.USER_NOT_FOUND)
        return success(sanitize(user))

    def update_avatar(self, user_id: str, local_path: str | None) -> Result:
        return self._replace_image(user_id, local_path, "avatar", "avatar")

    def update_cover_image(self, user_id: str, local_path: str | None) -> Result:
        return self._replace_image(user_id, local_path, "cover_image", "cover image")
