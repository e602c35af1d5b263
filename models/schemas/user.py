from marshmallow import Schema, fields, pre_load, validate, validates_schema, ValidationError, EXCLUDE


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def not_blank(value):
    """Empty and whitespace-only strings count as missing."""
    if value is None or not str(value).strip():
        raise ValidationError("Field may not be blank.")


class UserRegisterSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    fullname = fields.String(required=True, validate=not_blank)
    email = fields.Email(required=True)
    # "@" is reserved for emails so a login identifier is never ambiguous
    username = fields.String(
        required=True,
        validate=[not_blank, validate.Regexp(r"^[^@\s]+$", error="Username may not contain @ or spaces.")],
    )
    password = fields.String(required=True, load_only=True, validate=not_blank)

    @pre_load
    def normalize(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        # Email validation would report "Not a valid email address." for blanks
        if "email" in data:
            if isinstance(data["email"], str) and not data["email"].strip():
                data.pop("email")
            else:
                data["email"] = _norm_email(data["email"])
        if isinstance(data.get("username"), str):
            data["username"] = data["username"].strip().lower()
        if isinstance(data.get("fullname"), str):
            data["fullname"] = data["fullname"].strip()
        return data


class UserLoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    username = fields.String(allow_none=True)
    email = fields.String(allow_none=True)
    password = fields.String(required=True, load_only=True, validate=not_blank)

    @validates_schema
    def validate_identity(self, data, **kwargs):
        if not any((data.get(k) or "").strip() for k in ("username", "email")):
            raise ValidationError("username or email is required", field_name="username")


class RefreshTokenSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refreshToken = fields.String(allow_none=True)


class ChangePasswordSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    oldPassword = fields.String(required=True, load_only=True, validate=not_blank)
    newPassword = fields.String(required=True, load_only=True, validate=not_blank)


class AccountUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    fullname = fields.String(required=True, validate=not_blank)
    email = fields.Email(required=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("email"), str):
            data = dict(data)
            if not data["email"].strip():
                data.pop("email")
            else:
                data["email"] = _norm_email(data["email"])
        return data


class UserOutSchema(Schema):
    """Sanitized user: no password hash, no refresh token."""
    id = fields.String()
    username = fields.String()
    email = fields.String()
    fullname = fields.String()
    avatar = fields.String()
    coverImage = fields.String(attribute="cover_image")
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class TokenPairSchema(Schema):
    accessToken = fields.String(attribute="access_token")
    refreshToken = fields.String(attribute="refresh_token")


_user_out_schema = UserOutSchema()


def sanitize(user) -> dict:
    return _user_out_schema.dump(user)
