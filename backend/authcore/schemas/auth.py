"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from .user import UserSchema


class RegisterSchema(Schema):
    """Input payload for account registration."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    name = fields.String(required=True, validate=validate.Length(min=1, max=100))
    password = fields.String(required=True, validate=validate.Length(min=8, max=128))


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    # No minimum here: a short password is simply wrong, not malformed.
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshSchema(Schema):
    refresh_token = fields.String(required=True, validate=validate.Length(min=1, max=128))


class LogoutSchema(Schema):
    """Input payload for revoking one or all refresh tokens."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1, max=128))
    all_sessions = fields.Boolean(load_default=False)


class TokenPairSchema(Schema):
    """Response payload containing an access/refresh token pair."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    token_type = fields.Constant("bearer")


class SessionSchema(Schema):
    """Response payload of register and login: tokens plus the user."""

    tokens = fields.Nested(TokenPairSchema, required=True)
    user = fields.Nested(UserSchema, required=True)
