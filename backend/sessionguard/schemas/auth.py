"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class LoginSchema(Schema):
    """Input payload for opening a session for an already verified user."""

    user_id = fields.String(required=True, validate=validate.Length(min=1, max=128))


class TokenResponseSchema(Schema):
    """Response payload containing a session token."""

    access_token = fields.String(required=True)
    token_type = fields.String(dump_default="bearer")


class SessionSchema(Schema):
    """Response payload describing the session behind the presented token."""

    user_id = fields.String(required=True)
    token_id = fields.String(required=True)
    issued_at = fields.DateTime(required=True)
    expires_at = fields.DateTime(required=True)
