# sessionguard/services/tokens/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from sessionguard.services._shared.errors import InvalidReason

# ---------------------------- Claims ---------------------------------- #


@dataclass(frozen=True, slots=True)
class ClaimSet:
    """
    Payload embedded in a signed session token.

    :param token_id: Unique token instance id (``access_uuid`` claim).
    :type token_id: str
    :param user_id: Authenticated subject (``user_id`` claim).
    :type user_id: str
    :param issued_at: Creation time, UTC (``iat`` claim).
    :type issued_at: datetime
    :param expires_at: Absolute expiry, UTC (``exp`` claim).
    :type expires_at: datetime
    :param issuer: Service identifier (``iss`` claim).
    :type issuer: str
    """

    token_id: str
    user_id: str
    issued_at: datetime
    expires_at: datetime
    issuer: str


# --------------------------- Outcomes ---------------------------------- #


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """
    Outcome of :meth:`TokenService.validate`.

    :param valid: ``True`` only when signature and session record both check out.
    :type valid: bool
    :param reason: Why the token was refused; ``None`` when valid.
    :type reason: InvalidReason | None
    :param claims: Verified claims when valid.
    :type claims: ClaimSet | None
    """

    valid: bool
    reason: InvalidReason | None = None
    claims: ClaimSet | None = None

    @classmethod
    def ok(cls, claims: ClaimSet) -> ValidationResult:
        return cls(valid=True, claims=claims)

    @classmethod
    def refused(cls, reason: InvalidReason) -> ValidationResult:
        return cls(valid=False, reason=reason)


# --------------------------- Settings ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenSettings:
    """
    Immutable signing configuration, built once at startup.

    :param secret: Symmetric key material for HMAC signing.
    :type secret: str
    :param issuer: Fixed ``iss`` value for this deployment.
    :type issuer: str
    :param session_ttl: Lifetime of every issued token.
    :type session_ttl: timedelta
    :param algorithm: HMAC algorithm name (``HS256``/``HS384``/``HS512``).
    :type algorithm: str
    """

    secret: str
    issuer: str = "session-guard"
    session_ttl: timedelta = timedelta(minutes=30)
    algorithm: str = "HS256"

    def __repr__(self) -> str:
        return (
            f"TokenSettings(secret='***', issuer={self.issuer!r}, "
            f"session_ttl={self.session_ttl!r}, algorithm={self.algorithm!r})"
        )
