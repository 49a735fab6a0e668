"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They serve as stable contracts between the store
adapters, the token service and the delivery layer.

The translation to HTTP responses (RFC 7807) is handled by
``sessionguard/core/errors.py`` via :func:`translate_service_error`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from store adapters or the token service.
    - The API layer translates them to ``APIError``.
    """

    pass


class InvalidReason(str, Enum):
    """Why a presented token was refused."""

    MISSING_CREDENTIAL = "no token found"
    SIGNATURE_INVALID = "invalid token signature"
    ALGORITHM_MISMATCH = "unexpected signing method"
    TOKEN_EXPIRED = "token expired"
    CLAIMS_INVALID = "token claims do not match the expected shape"
    SESSION_NOT_FOUND = "no matching session"
    SESSION_MISMATCH = "session does not match presented token"
    STORE_UNAVAILABLE = "session store unavailable"


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


class TokenError(ServiceError):
    """
    Raised when a bearer token cannot be turned into a claim set.

    :param reason: Machine-readable refusal reason.
    :type reason: InvalidReason
    :param detail: Optional library message, for logs only.
    :type detail: str | None
    """

    def __init__(self, reason: InvalidReason, detail: str | None = None) -> None:
        super().__init__(detail or reason.value)
        self.reason = reason
        self.detail = detail


@dataclass(slots=True)
class SessionNotFoundError(ServiceError):
    """
    Raised when a revocation targets a session with no live record.

    :param token_id: Identifier that matched nothing in the store.
    :type token_id: str
    """

    token_id: str

    def __str__(self) -> str:  # pragma: no cover
        return f"Session not found: {self.token_id}"


class StoreUnavailableError(ServiceError):
    """Raised when the revocation store cannot be reached."""

    def __init__(self, message: str = "Session store unavailable") -> None:
        super().__init__(message)


class InvalidUserError(ServiceError):
    """Raised when a token is requested for an unusable subject."""

    def __init__(self, message: str = "user_id must be a non-empty string") -> None:
        super().__init__(message)
