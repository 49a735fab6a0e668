"""HTTP surface of the session service."""

from __future__ import annotations

from flask import Flask


def init_app(app: Flask) -> None:
    """Mount the v1 health and auth blueprints under ``API_BASE_PREFIX``."""
    from sessionguard.api.v1 import auth, health

    prefix = app.config.get("API_BASE_PREFIX", "/api").rstrip("/") + "/v1"
    app.register_blueprint(health.bp, url_prefix=prefix)
    app.register_blueprint(auth.bp, url_prefix=f"{prefix}/auth")


__all__ = ["init_app"]
