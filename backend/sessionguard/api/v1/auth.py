"""Session endpoints: login, logout and whoami."""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from sessionguard.api.middleware import require_session
from sessionguard.core.extensions import get_token_service
from sessionguard.schemas import LoginSchema, SessionSchema, TokenResponseSchema

bp = Blueprint("auth", __name__)

login_schema = LoginSchema()
token_schema = TokenResponseSchema()
session_schema = SessionSchema()


@bp.post("/login")
def login():
    """Open a session for a user whose credentials were verified upstream."""

    data = login_schema.load(request.get_json(silent=True) or {})
    token = get_token_service().issue(data["user_id"])
    body = {"data": token_schema.dump({"access_token": token})}
    return jsonify(body), 201


@bp.post("/logout")
@require_session
def logout():
    """Revoke the session behind the presented token."""

    get_token_service().revoke(g.session_claims)
    return jsonify({"data": {"revoked": True}})


@bp.get("/whoami")
@require_session
def whoami():
    """Describe the authenticated session."""

    claims = g.session_claims
    body = {
        "data": session_schema.dump(
            {
                "user_id": claims.user_id,
                "token_id": claims.token_id,
                "issued_at": claims.issued_at,
                "expires_at": claims.expires_at,
            }
        )
    }
    return jsonify(body)
