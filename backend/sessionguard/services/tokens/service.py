# sessionguard/services/tokens/service.py
from __future__ import annotations

import hmac
import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any, Protocol
from uuid import uuid4

import jwt

from sessionguard.services._shared.errors import (
    InvalidReason,
    InvalidUserError,
    SessionNotFoundError,
    StoreUnavailableError,
    TokenError,
)
from sessionguard.services._shared.ports import RevocationStore
from sessionguard.services.tokens.dto import ClaimSet, TokenSettings, ValidationResult

log = logging.getLogger(__name__)

AUTH_HEADER = "Authorization"
BEARER_SCHEME = "bearer"

# Claim names on the wire
TOKEN_ID_CLAIM = "access_uuid"
USER_ID_CLAIM = "user_id"
REQUIRED_CLAIMS = [TOKEN_ID_CLAIM, USER_ID_CLAIM, "iat", "exp", "iss"]


class HasHeaders(Protocol):
    """Anything carrying request headers (Flask/Werkzeug requests included)."""

    @property
    def headers(self) -> Mapping[str, str]: ...


class TokenService:
    """
    Session token lifecycle (issue / validate / extract / revoke).

    A token is usable only while its signature verifies *and* the revocation
    store holds a record for its id whose value equals the presented string.
    The service keeps no mutable state of its own; the store is the single
    source of truth for liveness.
    """

    def __init__(
        self,
        store: RevocationStore,
        settings: TokenSettings,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize the service with its collaborators.

        :param store: Revocation store adapter (Redis in production).
        :param settings: Signing secret, issuer, lifetime and algorithm.
        :param clock: Returns the current aware UTC time. Defaults to the system clock.
        """
        self.store = store
        self.settings = settings
        self._clock = clock or (lambda: datetime.now(UTC))

    # ------------------------------------------------------------------ #
    # Issue
    # ------------------------------------------------------------------ #

    def issue(self, user_id: str) -> str:
        """
        Sign a new session token for ``user_id`` and register its record.

        :param user_id: Subject the token authenticates.
        :returns: Compact signed token.
        :raises InvalidUserError: If ``user_id`` is not a non-empty string.
        :raises StoreUnavailableError: If the record could not be written; no
            token is handed out in that case.
        """
        if not isinstance(user_id, str) or not user_id.strip():
            raise InvalidUserError()

        # Whole seconds so iat/exp and the record TTL agree exactly
        now = self._clock().replace(microsecond=0)
        expires_at = now + self.settings.session_ttl
        token_id = str(uuid4())
        payload: dict[str, Any] = {
            TOKEN_ID_CLAIM: token_id,
            USER_ID_CLAIM: user_id,
            "iat": now,
            "exp": expires_at,
            "iss": self.settings.issuer,
        }
        token = jwt.encode(payload, self.settings.secret, algorithm=self.settings.algorithm)

        self.store.set(token_id, token, expires_at - now)
        log.info("session.issued", extra={"token_id": token_id, "user_id": user_id})
        return token

    # ------------------------------------------------------------------ #
    # Validate
    # ------------------------------------------------------------------ #

    def validate(self, signed_token: str, token_id: str) -> ValidationResult:
        """
        Check signature, algorithm and session record for a presented token.

        Never raises for token or store problems; the refusal reason is
        carried by the returned :class:`ValidationResult`. Performs exactly
        one store read, and only after the signature has verified.
        """
        try:
            claims = self._decode(signed_token)
        except TokenError as exc:
            return ValidationResult.refused(exc.reason)

        try:
            stored = self.store.get(token_id)
        except StoreUnavailableError:
            return ValidationResult.refused(InvalidReason.STORE_UNAVAILABLE)

        if stored is None:
            return ValidationResult.refused(InvalidReason.SESSION_NOT_FOUND)
        if not hmac.compare_digest(stored.encode(), signed_token.encode()):
            return ValidationResult.refused(InvalidReason.SESSION_MISMATCH)
        return ValidationResult.ok(claims)

    # ------------------------------------------------------------------ #
    # Extract
    # ------------------------------------------------------------------ #

    @staticmethod
    def bearer_token(request: HasHeaders) -> str | None:
        """Return the token carried by the ``Authorization`` header, if any."""
        raw = request.headers.get(AUTH_HEADER)
        if not raw:
            return None
        value = raw.strip()
        scheme, _, rest = value.partition(" ")
        if rest and scheme.lower() == BEARER_SCHEME:
            value = rest.strip()
        elif value.lower() == BEARER_SCHEME:
            return None
        return value or None

    def extract_metadata(self, request: HasHeaders) -> ClaimSet:
        """
        Recover the claim set of the request's bearer token.

        Verifies signature, algorithm and claim shape but does **not**
        consult the revocation store.

        :raises TokenError: With ``MISSING_CREDENTIAL`` when no token is
            present, or the decoding failure reason otherwise.
        """
        token = self.bearer_token(request)
        if token is None:
            raise TokenError(InvalidReason.MISSING_CREDENTIAL)
        return self._decode(token)

    # ------------------------------------------------------------------ #
    # Revoke
    # ------------------------------------------------------------------ #

    def revoke(self, claims: ClaimSet) -> None:
        """
        Delete the session record for ``claims.token_id``.

        :raises SessionNotFoundError: If no record was deleted (already
            revoked, expired, or unknown id).
        :raises StoreUnavailableError: If the store could not be reached.
        """
        deleted = self.store.delete(claims.token_id)
        if deleted != 1:
            raise SessionNotFoundError(claims.token_id)
        log.info(
            "session.revoked",
            extra={"token_id": claims.token_id, "user_id": claims.user_id},
        )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _decode(self, token: str) -> ClaimSet:
        """Verify ``token`` and map it to a :class:`ClaimSet`.

        PyJWT checks the signature, issuer and claim presence. The lifetime
        claims are checked here against the injected clock.
        """
        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError as exc:
            raise TokenError(InvalidReason.SIGNATURE_INVALID, str(exc)) from exc

        alg = header.get("alg")
        if alg != self.settings.algorithm:
            raise TokenError(InvalidReason.ALGORITHM_MISMATCH, f"Unexpected signing method {alg!r}")

        try:
            payload = jwt.decode(
                token,
                self.settings.secret,
                algorithms=[self.settings.algorithm],
                issuer=self.settings.issuer,
                options={"require": REQUIRED_CLAIMS, "verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidAlgorithmError as exc:
            raise TokenError(InvalidReason.ALGORITHM_MISMATCH, str(exc)) from exc
        except jwt.DecodeError as exc:
            # InvalidSignatureError is a DecodeError
            raise TokenError(InvalidReason.SIGNATURE_INVALID, str(exc)) from exc
        except jwt.InvalidTokenError as exc:
            raise TokenError(InvalidReason.CLAIMS_INVALID, str(exc)) from exc

        claims = self._to_claims(payload)
        now = self._clock()
        if claims.expires_at <= now:
            raise TokenError(InvalidReason.TOKEN_EXPIRED, "Signature has expired")
        if claims.issued_at > now:
            raise TokenError(InvalidReason.CLAIMS_INVALID, "Token issued in the future")
        return claims

    @staticmethod
    def _to_claims(payload: Mapping[str, Any]) -> ClaimSet:
        token_id = payload.get(TOKEN_ID_CLAIM)
        user_id = payload.get(USER_ID_CLAIM)
        if not isinstance(token_id, str) or not token_id:
            raise TokenError(InvalidReason.CLAIMS_INVALID, f"{TOKEN_ID_CLAIM} must be a string")
        if not isinstance(user_id, str) or not user_id:
            raise TokenError(InvalidReason.CLAIMS_INVALID, f"{USER_ID_CLAIM} must be a string")
        return ClaimSet(
            token_id=token_id,
            user_id=user_id,
            issued_at=_numeric_date(payload, "iat"),
            expires_at=_numeric_date(payload, "exp"),
            issuer=str(payload["iss"]),
        )


def _numeric_date(payload: Mapping[str, Any], name: str) -> datetime:
    """Read a NumericDate claim as an aware UTC datetime."""
    value = payload[name]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TokenError(InvalidReason.CLAIMS_INVALID, f"{name} must be a number")
    try:
        return datetime.fromtimestamp(int(value), tz=UTC)
    except (ValueError, OverflowError, OSError) as exc:
        raise TokenError(InvalidReason.CLAIMS_INVALID, f"{name} is out of range") from exc
