"""Bearer-session gate for protected routes."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from flask import g, request

from sessionguard.core.errors import InvalidCredential, MissingCredential
from sessionguard.core.extensions import get_token_service
from sessionguard.services._shared.errors import TokenError
from sessionguard.services.tokens import ClaimSet

F = TypeVar("F", bound=Callable[..., Any])

log = logging.getLogger(__name__)


def authenticate_request() -> ClaimSet:
    """Resolve the current request's session or raise an ``APIError``.

    A missing header is rejected before any cryptographic or store work.
    Failure reasons are logged; the client only sees a generic message.

    :returns: Verified claims of a live session.
    :raises MissingCredential: No bearer token on the request (400).
    :raises InvalidCredential: Token forged, expired, revoked, or the store
        could not confirm it (401).
    """
    service = get_token_service()
    token = service.bearer_token(request)
    if token is None:
        log.warning("session.rejected", extra={"reason": "missing_credential"})
        raise MissingCredential()

    try:
        claims = service.extract_metadata(request)
    except TokenError as exc:
        log.warning(
            "session.rejected",
            extra={"reason": exc.reason.name.lower(), "endpoint": request.endpoint},
        )
        raise InvalidCredential() from exc

    result = service.validate(token, claims.token_id)
    if not result.valid:
        reason = result.reason.name.lower() if result.reason else "unknown"
        log.warning(
            "session.rejected",
            extra={"reason": reason, "token_id": claims.token_id, "endpoint": request.endpoint},
        )
        raise InvalidCredential()

    g.session_claims = result.claims
    g.user_id = claims.user_id
    return claims


def require_session(func: F) -> F:
    """Ensure the request carries a valid, unrevoked session token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        authenticate_request()
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
