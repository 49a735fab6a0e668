"""Service layer public API.

This package exposes the building blocks of the session lifecycle so that
callers can import from :mod:`sessionguard.services` without knowing internal
structure.

Re-exports
----------
- Token service (from ``sessionguard.services.tokens``)
    * :class:`TokenService`
    * DTOs: :class:`ClaimSet`, :class:`ValidationResult`, :class:`TokenSettings`

- Errors (from ``sessionguard.services._shared.errors``)
    * :class:`ServiceError`, :class:`TokenError`, :class:`InvalidReason`,
      :class:`SessionNotFoundError`, :class:`StoreUnavailableError`,
      :class:`InvalidUserError`
"""

from __future__ import annotations

from ._shared.errors import (
    InvalidReason,
    InvalidUserError,
    ServiceError,
    SessionNotFoundError,
    StoreUnavailableError,
    TokenError,
)
from .tokens import ClaimSet, TokenService, TokenSettings, ValidationResult

__all__ = [
    "TokenService",
    "ClaimSet",
    "ValidationResult",
    "TokenSettings",
    "ServiceError",
    "TokenError",
    "InvalidReason",
    "SessionNotFoundError",
    "StoreUnavailableError",
    "InvalidUserError",
]
