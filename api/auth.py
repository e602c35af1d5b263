"""
Session blueprint:
- POST /users/register
- POST /users/login
- POST /users/refresh-token
- POST /users/logout
- POST /users/change-password

Tokens travel in httpOnly cookies (accessToken, refreshToken) and are also
returned in the body for clients that cannot use cookies.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app

from models.schemas.user import UserLoginSchema, ChangePasswordSchema, RefreshTokenSchema, TokenPairSchema
from api.cookies import REFRESH_COOKIE, cookie_config, set_session_cookies, clear_session_cookies
from api.errors import unwrap
from api.uploads import save_upload, discard_upload
from utils.decorators import jwt_required

bp = Blueprint("auth", __name__, url_prefix="/users")

user_login_schema = UserLoginSchema()
change_password_schema = ChangePasswordSchema()
refresh_token_schema = RefreshTokenSchema()
token_pair_schema = TokenPairSchema()


def _sessions():
    return current_app.extensions["sessions"]


@bp.post("/register")
def register():
    """
    Register a new user (multipart form).
    ---
    tags:
      - Auth
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: fullname, type: string, required: true }
      - { in: formData, name: email, type: string, required: true }
      - { in: formData, name: username, type: string, required: true }
      - { in: formData, name: password, type: string, required: true }
      - { in: formData, name: avatar, type: file, required: true }
      - { in: formData, name: coverImage, type: file, required: false }
    responses:
      201:
        description: Created
      400:
        description: Missing field or avatar
      409:
        description: Username or email already registered
    """
    avatar_path = save_upload("avatar")
    cover_path = save_upload("coverImage")
    try:
        result = current_app.extensions["accounts"].register(request.form, avatar_path, cover_path)
    finally:
        discard_upload(avatar_path, cover_path)

    user = unwrap(result)
    return jsonify({"data": user, "message": "User registered successfully"}), 201


@bp.post("/login")
def login():
    """
    Login with username or email; sets session cookies
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username: { type: string }
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns sanitized user and tokens)
      401:
        description: Invalid credentials
      404:
        description: User not found
    """
    payload = user_login_schema.load(request.get_json(silent=True) or {})
    identifier = (payload.get("username") or "").strip() or payload.get("email")
    outcome = unwrap(_sessions().login(identifier, payload["password"]))

    body = {"user": outcome.user, **token_pair_schema.dump(outcome.tokens)}
    response = jsonify({"data": body, "message": "User logged in successfully"})
    set_session_cookies(response, outcome.tokens, cookie_config(current_app.config))
    return response, 200


@bp.post("/refresh-token")
def refresh():
    """
    Rotate the refresh token and issue a new access token
    Reads the refreshToken cookie, falling back to the JSON body.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: OK (returns new tokens)
      401:
        description: Missing, invalid or superseded refresh token
    """
    payload = refresh_token_schema.load(request.get_json(silent=True) or {})
    incoming = request.cookies.get(REFRESH_COOKIE) or payload.get("refreshToken")
    tokens = unwrap(_sessions().refresh(incoming))

    response = jsonify({"data": token_pair_schema.dump(tokens), "message": "Access token refreshed successfully"})
    set_session_cookies(response, tokens, cookie_config(current_app.config))
    return response, 200


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: forget the stored refresh token and clear cookies
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    unwrap(_sessions().logout(g.current_user.id))
    response = jsonify({"data": {}, "message": "User logged out successfully"})
    clear_session_cookies(response, cookie_config(current_app.config))
    return response, 200


@bp.post("/change-password")
@jwt_required()
def change_password():
    """
    Change the current user's password
    ---
    tags:
      - Auth
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
             oldPassword: { type: string }
             newPassword: { type: string }
    responses:
      200:
        description: Password changed
      401:
        description: Old password is incorrect
    """
    payload = change_password_schema.load(request.get_json(silent=True) or {})
    unwrap(_sessions().change_password(g.current_user.id, payload["oldPassword"], payload["newPassword"]))
    return jsonify({"data": {}, "message": "Password changed successfully"}), 200
