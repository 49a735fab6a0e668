"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import LoginSchema, SessionSchema, TokenResponseSchema

__all__ = [
    "LoginSchema",
    "SessionSchema",
    "TokenResponseSchema",
]
