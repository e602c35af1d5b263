from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app

from api.errors import unwrap
from api.uploads import save_upload, discard_upload
from utils.decorators import jwt_required

bp = Blueprint("users", __name__, url_prefix="/users")


def _accounts():
    return current_app.extensions["accounts"]


@bp.get("/current-user")
@jwt_required()
def current_user():
    """
    Get current user info
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    user = unwrap(_accounts().get_current_user(g.current_user.id))
    return jsonify({"data": user, "message": "Current user details"}), 200


@bp.patch("/update-account")
@jwt_required()
def update_account():
    """
    Update fullname and email
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             fullname: { type: string }
             email: { type: string }
    responses:
      200: { description: OK }
      400: { description: Fullname and email are required }
      409: { description: Email already registered }
    """
    payload = request.get_json(silent=True) or {}
    user = unwrap(_accounts().update_account_details(g.current_user.id, payload))
    return jsonify({"data": user, "message": "Account details updated successfully"}), 200


def _replace_image(field: str, operation, message: str):
    path = save_upload(field)
    try:
        result = operation(g.current_user.id, path)
    finally:
        discard_upload(path)
    return jsonify({"data": unwrap(result), "message": message}), 200


@bp.patch("/avatar")
@jwt_required()
def update_avatar():
    """
    Replace the avatar image
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: avatar, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: File is required }
    """
    return _replace_image("avatar", _accounts().update_avatar, "Avatar updated successfully")


@bp.patch("/cover-image")
@jwt_required()
def update_cover_image():
    """
    Replace the cover image
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: coverImage, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: File is required }
    """
    return _replace_image("coverImage", _accounts().update_cover_image, "Cover image updated successfully")
