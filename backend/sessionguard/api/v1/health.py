"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from sessionguard.core.extensions import get_revocation_store
from sessionguard.services._shared.errors import StoreUnavailableError

bp = Blueprint("health", __name__)


@bp.get("/health")
def healthcheck():
    """Return application and session store health information."""

    store_status = "ok"
    try:
        if not get_revocation_store().ping():
            store_status = "fail"
    except StoreUnavailableError:
        current_app.logger.exception("healthcheck.store_error")
        store_status = "fail"
    version = current_app.config.get("APP_VERSION", "dev")
    healthy = store_status == "ok"
    payload = {"status": "ok" if healthy else "degraded", "store": store_status, "version": version}
    return jsonify(payload), 200 if healthy else 503
