"""Problem+JSON (RFC 7807) responses for session and API failures."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from sessionguard.core.logger import current_request_id
from sessionguard.services._shared.errors import (
    ServiceError,
    SessionNotFoundError,
    StoreUnavailableError,
    TokenError,
)

log = logging.getLogger(__name__)

# Stable codes for the statuses this API answers with
STATUS_CODES = {
    400: "bad_request",
    401: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
    422: "validation_error",
    500: "internal_server_error",
    503: "service_unavailable",
}


def problem(
    status: int, code: str, detail: str, details: dict[str, Any] | None = None
) -> tuple[Response, int]:
    """Render a problem document with the ``application/problem+json`` type."""
    body: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": detail,
        "instance": request.path,
        "code": code,
        "request_id": current_request_id(),
    }
    if details:
        body["details"] = details
    resp = jsonify(body)
    resp.mimetype = "application/problem+json"
    log.log(
        logging.ERROR if status >= 500 else logging.WARNING,
        "api.error",
        extra={"reason": code, "endpoint": request.endpoint},
    )
    return resp, status


class APIError(Exception):
    """An error the API reports to the client as-is.

    Subclasses fix ``status``, ``code`` and the default ``message``.
    """

    status: int = HTTPStatus.BAD_REQUEST
    code = "bad_request"
    message = "Bad request"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


class MissingCredential(APIError):
    """400 when the request carries no bearer token."""

    code = "missing_credential"
    message = "No token found"


class InvalidCredential(APIError):
    """401 when the bearer token is forged, expired or revoked."""

    status = HTTPStatus.UNAUTHORIZED
    code = "invalid_credential"
    message = "Token is not valid"


class SessionGone(APIError):
    status = HTTPStatus.NOT_FOUND
    code = "session_not_found"
    message = "Session not found"


class StoreDown(APIError):
    status = HTTPStatus.SERVICE_UNAVAILABLE
    code = "store_unavailable"
    message = "Session store unavailable"


def translate_service_error(exc: ServiceError) -> APIError:
    """Map a service-layer error to the API error shown to clients.

    Token failure reasons stay server-side; the client gets the generic 401.
    """
    if isinstance(exc, SessionNotFoundError):
        return SessionGone()
    if isinstance(exc, StoreUnavailableError):
        return StoreDown()
    if isinstance(exc, TokenError):
        return InvalidCredential()
    return APIError(str(exc))


def init_app(app: Flask) -> None:
    """Attach the problem+json error handlers to ``app``."""

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return problem(int(err.status), err.code, err.message)

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        return handle_api_error(translate_service_error(err))

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return problem(422, STATUS_CODES[422], "Validation failed", {"errors": err.messages})

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = err.code or 500
        detail = f"Route '{request.path}' not found" if status == 404 else err.description
        return problem(status, STATUS_CODES.get(status, "error"), detail or "")

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        log.error("api.unhandled", exc_info=err)
        return problem(500, STATUS_CODES[500], "Unexpected error")
