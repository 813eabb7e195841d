"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshSchema(Schema):
    """Optional body for ``/auth/refresh`` when the cookie is unavailable."""

    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(load_default=None)


class LogoutSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    all_sessions = fields.Boolean(load_default=False)
    refresh_token = fields.String(load_default=None)


class PasswordChangeSchema(Schema):
    """Input payload for ``/auth/change-password``."""

    class Meta:
        unknown = EXCLUDE

    current_password = fields.String(required=True, validate=validate.Length(min=1, max=128))
    new_password = fields.String(required=True, validate=validate.Length(min=8, max=128))


class AuthUserSchema(Schema):
    id = fields.Integer(required=True)
    email = fields.Email(required=True)
    role = fields.String(required=True)


class TokenResponseSchema(Schema):
    """Response payload with the access token; the refresh token rides in a cookie."""

    access_token = fields.String(required=True)
    token_type = fields.String(dump_default="Bearer")
    expires_at = fields.DateTime(attribute="access_expires_at")


class LoginResponseSchema(Schema):
    user = fields.Nested(AuthUserSchema)
    tokens = fields.Nested(TokenResponseSchema)


class WhoAmISchema(Schema):
    """Claims of the presented access token."""

    id = fields.Integer(attribute="user_id")
    email = fields.String(allow_none=True)
    role = fields.String()
    token_version = fields.Integer()
    expires_at = fields.DateTime()
